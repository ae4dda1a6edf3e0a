# src/telemetry_gateway/__main__.py
import asyncio
import signal
import sys
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from fastapi import FastAPI
from hypercorn.asyncio import serve
from hypercorn.config import Config as HyperConfig
import traceback

from telemetry_gateway.api.errors import register_exception_handlers
from telemetry_gateway.api.routes import sensor_router
from telemetry_gateway.api.endpoints.device import device_router
from telemetry_gateway.api.endpoints.commands import command_router
from telemetry_gateway.core.serial_bridge import SerialBridge
from telemetry_gateway.core.telemetry_service import TelemetryService
from telemetry_gateway.storage.sensor_database import SensorDatabase
from telemetry_gateway.utils.logging import setup_logging, get_logger
from telemetry_gateway.utils.exceptions import (
    ConfigurationError, InitializationError, TransportError
)

DEFAULT_CONFIG_PATH = "src/config/default.yml"


class AppState:
    """Holds application state and components"""
    def __init__(self):
        self.db: Optional[SensorDatabase] = None
        self.telemetry_service: Optional[TelemetryService] = None
        self.serial_bridge: Optional[SerialBridge] = None


class ConfigManager:
    """Manages configuration loading and validation"""
    
    @staticmethod
    def load_config(config_path: str) -> Dict[str, Any]:
        """Load and validate configuration from YAML file"""
        try:
            with open(config_path, 'r') as f:
                config = yaml.safe_load(f)
                if config is None:
                    raise ConfigurationError("Configuration file is empty or incorrectly formatted")
                
                required_sections = ['api', 'database', 'logging']
                missing_sections = [section for section in required_sections if section not in config]
                if missing_sections:
                    raise ConfigurationError(f"Missing required configuration sections: {', '.join(missing_sections)}")
                
                return config
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Error parsing configuration file: {e}")
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {config_path}")


def create_app(app_state: AppState) -> FastAPI:
    """Build the FastAPI application around an already initialized state"""
    app = FastAPI(
        title="Telemetry Gateway API",
        description="Sensor readings, device status, alerts and command relay",
        version="1.0.0"
    )
    app.state.components = app_state
    register_exception_handlers(app)

    app.include_router(sensor_router, prefix="/api")
    app.include_router(device_router, prefix="/api")
    app.include_router(command_router, prefix="/api")
    return app


class APIServer:
    """Handles API server initialization and management"""
    
    def __init__(self, config: Dict[str, Any], shutdown_event: asyncio.Event, app_state: AppState):
        self.config = config
        self.shutdown_event = shutdown_event
        self.logger = get_logger("API Server")
        self.app: Optional[FastAPI] = None
        self.app_state = app_state

    async def initialize(self) -> FastAPI:
        """Initialize FastAPI application with routes"""
        try:
            self.app = create_app(self.app_state)
            return self.app
        except Exception as e:
            raise InitializationError(f"Failed to initialize API server: {e}")

    async def start(self):
        """Start the API server"""
        if not self.app:
            await self.initialize()

        hypercorn_config = HyperConfig()
        try:
            host = self.config['api']['host']
            port = self.config['api']['port']
            hypercorn_config.bind = [f"{host}:{port}"]
            
            async def shutdown_trigger():
                await self.shutdown_event.wait()
            
            self.logger.info(f"Starting API server on {host}:{port}")
            await serve(self.app, hypercorn_config, shutdown_trigger=shutdown_trigger)
        except Exception as e:
            self.logger.error(f"Failed to start API server: {traceback.format_exc()}")
            raise


class GatewayApp:
    """Main Telemetry Gateway application class"""
    
    def __init__(self, config_path: str):
        self.logger = get_logger("Main App")
        try:
            self.config = ConfigManager.load_config(config_path)
            setup_logging(self.config.get('logging', {}))
        except ConfigurationError as e:
            self.logger.error(f"Configuration error: {e}")
            sys.exit(1)

        self.shutdown_event = asyncio.Event()
        self.app_state = AppState()
        self.api_server = APIServer(self.config, self.shutdown_event, self.app_state)

    async def initialize_components(self):
        """Initialize all application components"""
        try:
            db_config = self.config['database']
            self.app_state.db = SensorDatabase(
                db_config['path'],
                max_connections=db_config.get('pool_size', 5)
            )
            await self.app_state.db.initialize()

            self.app_state.telemetry_service = TelemetryService(self.app_state.db, self.config)
        except Exception as e:
            raise InitializationError(f"Failed to initialize components: {traceback.format_exc()}")

        serial_config = self.config.get('serial', {})
        if serial_config.get('enabled'):
            bridge = SerialBridge(serial_config, self.app_state.telemetry_service)
            try:
                await bridge.initialize()
                self.app_state.serial_bridge = bridge
            except TransportError as e:
                # The HTTP surface stays up without the tethered device
                self.logger.error(f"Serial device unavailable: {e}")

        self.logger.info("All components initialized successfully")

    async def shutdown(self):
        """Gracefully shutdown all components"""
        self.logger.info("Initiating shutdown sequence")
        try:
            if self.app_state.serial_bridge:
                await self.app_state.serial_bridge.stop()
            if self.app_state.db:
                await self.app_state.db.close()
            self.logger.info("Shutdown completed successfully")
        except Exception as e:
            self.logger.error(f"Error during shutdown: {traceback.format_exc()}")
        finally:
            self.shutdown_event.set()

    def handle_signals(self):
        """Set up signal handlers for graceful shutdown"""
        loop = asyncio.get_running_loop()

        def signal_handler(signum):
            self.logger.info(f"Received signal {signum}")
            asyncio.create_task(self.shutdown())

        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, signal_handler, sig)
            except NotImplementedError:
                signal.signal(sig, lambda signum, frame: signal_handler(signum))

    async def run(self):
        """Main application entry point"""
        try:
            self.handle_signals()
            await self.initialize_components()

            services = [self.api_server.start()]
            if self.app_state.serial_bridge:
                services.append(self.app_state.serial_bridge.start())
            await asyncio.gather(*services)
        except InitializationError as e:
            self.logger.error(f"Initialization error: {e}")
            await self.shutdown()
            sys.exit(1)
        except Exception as e:
            self.logger.error(f"Unexpected error: {traceback.format_exc()}")
            await self.shutdown()
            sys.exit(1)


def main():
    """Application entry point"""
    config_path = Path(sys.argv[1] if len(sys.argv) > 1 else DEFAULT_CONFIG_PATH)
    app = GatewayApp(str(config_path))
    asyncio.run(app.run())

if __name__ == "__main__":
    main()
