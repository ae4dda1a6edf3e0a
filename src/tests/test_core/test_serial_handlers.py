import pytest

from telemetry_gateway.handlers.serial_handlers import parse_device_line


def test_reading_line_is_parsed():
    reading = parse_device_line("Temperature: 22.50 °C, Humidity: 55.00 %, LDR Output: 312\r\n")

    assert reading.temperature == 22.5
    assert reading.humidity == 55.0
    assert reading.light_level == 312
    assert reading.captured_at is not None


def test_bytes_and_negative_temperatures():
    reading = parse_device_line("Temperature: -4.2 °C, Humidity: 80 %, LDR Output: 0".encode("utf-8"))

    assert reading.temperature == -4.2
    assert reading.light_level == 0


@pytest.mark.parametrize("line", [
    "",
    None,
    "ESP32 booting...",
    "Temperature: nan °C, Humidity: nan %, LDR Output: 12",
    "Temperature: 22.5 °C, Humidity: 55 %",
    "Humidity: 55 %, Temperature: 22.5 °C, LDR Output: 312",
])
def test_unrecognised_lines_are_ignored(line):
    assert parse_device_line(line) is None
