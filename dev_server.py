import uvicorn
from pathlib import Path
from telemetry_gateway.__main__ import AppState, ConfigManager, create_app
from telemetry_gateway.core.telemetry_service import TelemetryService
from telemetry_gateway.storage.sensor_database import SensorDatabase
from telemetry_gateway.utils.logging import setup_logging

def run_dev_server():
    config_path = Path("src/config/default.yml")
    try:
        config = ConfigManager.load_config(str(config_path))
        setup_logging(config.get('logging', {}))

        host = config.get('api', {}).get('host', '127.0.0.1')
        port = config.get('api', {}).get('port', 5000)

        app_state = AppState()
        app_state.db = SensorDatabase(config['database']['path'],
                                      max_connections=config['database'].get('pool_size', 5))
        app_state.telemetry_service = TelemetryService(app_state.db, config)
        app = create_app(app_state)

        @app.on_event("startup")
        async def open_database():
            await app_state.db.initialize()

        @app.on_event("shutdown")
        async def close_database():
            await app_state.db.close()

        uvicorn.run(app, host=host, port=port)
    except Exception as e:
        print(f"Failed to start development server: {e}")
        raise

if __name__ == "__main__":
    run_dev_server()
