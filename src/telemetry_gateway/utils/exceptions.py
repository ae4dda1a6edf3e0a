# src/telemetry_gateway/utils/exceptions.py

class TelemetryGatewayError(Exception):
    """Base exception class for Telemetry Gateway"""
    pass

class ConfigurationError(TelemetryGatewayError):
    """Raised when there are issues with configuration"""
    pass

class InitializationError(TelemetryGatewayError):
    """Raised when component initialization fails"""
    pass

class ValidationError(TelemetryGatewayError):
    """Raised when required input is missing or malformed"""
    pass

class InvalidPeriod(ValidationError):
    """Raised when a history period expression cannot be resolved"""
    pass

class InvalidCommand(ValidationError):
    """Raised when a device command is empty or malformed"""
    pass

class TransportError(TelemetryGatewayError):
    """Raised when communication with the device fails"""
    pass

class DatabaseError(Exception):
    """Base exception for database errors"""
    pass

class ConnectionPoolError(DatabaseError):
    """Exception for connection pool related errors"""
    pass

class StoreError(DatabaseError):
    """Raised when a persistence operation fails"""
    pass
