"""
Chat Relay - Main Application Entry Point

FastAPI application serving the AI chat relay, the text tools and the
realtime chat WebSocket.
"""

import argparse
import json
import os
import sys
import time
import uuid
import yaml
from contextlib import asynccontextmanager
from logging.config import dictConfig
from pathlib import Path

import fastapi
import uvicorn
from dotenv import load_dotenv
from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.text import Text

# Configure path for imports
current_dir = os.path.dirname(os.path.abspath(__file__))
if current_dir not in sys.path:
    sys.path.insert(0, current_dir)

# Import core components
from caching import ResponseCache
from core.chats import ChatHub, ChatStore
from core.completion import CompletionClient, CompletionService, RetryPolicy, SingleFlightQueue
from core.extraction import PageFetcher
from errors import RelayError
from utils import (
    LogRecord, LogEvent, ColoredConsoleFormatter, JSONFormatter,
    init_logger, info, warning, debug
)

# Import routers
from routers.chat import create_chat_router
from routers.extraction import create_extraction_router
from routers.handlers import RequestHandler
from routers.health import create_health_router
from routers.realtime import create_realtime_router

load_dotenv()

# Rich console for startup display
_console = Console()

PROJECT_ROOT = Path(__file__).parent.parent

DEFAULT_SYSTEM_PROMPT = (
    "You are a smart AI assistant. Answer BRIEFLY, CLEARLY and TO THE POINT, "
    "without filler. Use markdown for code and lists. Be as specific and useful as possible."
)

# ===== CONFIGURATION =====

class Settings:
    """Application settings with defaults, overridden by config.yaml sections."""

    # config.yaml section -> attribute prefix
    SECTIONS = {
        "completion": "completion_",
        "queue": "queue_",
        "cache": "cache_",
        "extraction": "extraction_",
        "chats": "chats_",
        "shortener": "shortener_",
    }

    def __init__(self, config_path: str = "config.yaml"):
        # Default values
        self.log_level: str = "INFO"
        self.log_file_path: str = ""
        self.log_color: bool = True
        self.host: str = "127.0.0.1"
        self.port: int = 3000
        self.reload: bool = False
        self.app_name: str = "Chat Relay"
        self.app_version: str = "1.0.0"
        self.cors_origins: list = ["*"]

        # Completion provider
        self.completion_api_key: str = ""
        self.completion_base_url: str = "https://api.groq.com/openai/v1"
        self.completion_model: str = "llama-3.3-70b-versatile"
        self.completion_temperature: float = 0.7
        self.completion_max_tokens: int = 4000
        self.completion_timeout: float = 60.0
        self.completion_system_prompt: str = DEFAULT_SYSTEM_PROMPT
        self.completion_history_limit: int = 10

        # Retry and pacing
        self.queue_max_attempts: int = 10
        self.queue_base_delay: float = 0.5
        self.queue_pacing_delay: float = 0.1

        self.cache_ttl_seconds: float = 300

        self.extraction_timeout: float = 15.0
        self.extraction_max_redirects: int = 5
        self.extraction_min_text_length: int = 10

        self.chats_max_messages: int = 50
        self.chats_default_title: str = "New chat"

        self.shortener_min_length: int = 80
        self.shortener_max_length: int = 120

        # Load from config file
        self.load_from_config(config_path)

        # The environment wins over the config file for the provider key
        self.completion_api_key = os.getenv("GROQ_API_KEY") or self.completion_api_key

    def load_from_config(self, config_path: str):
        """Load settings from configuration file."""
        # Resolve absolute path
        if not os.path.isabs(config_path):
            config_path = PROJECT_ROOT / config_path

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f) or {}
        except Exception as e:
            print(f"Warning: Failed to load settings from {config_path}: {e}")
            print("Using default settings.")
            return

        # Update settings from config
        settings_config = config.get('settings') or {}
        for key, value in settings_config.items():
            if hasattr(self, key):
                # Special handling for log file path
                if key == "log_file_path" and value and not os.path.isabs(value):
                    value = str(PROJECT_ROOT / value)
                setattr(self, key, value)

        for section, prefix in self.SECTIONS.items():
            for key, value in (config.get(section) or {}).items():
                if hasattr(self, prefix + key) and value is not None:
                    setattr(self, prefix + key, value)


def load_config(config_path: str = "config.yaml") -> dict:
    """Load full configuration from file."""
    if not os.path.isabs(config_path):
        config_path = PROJECT_ROOT / config_path

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}
    except Exception as e:
        print(f"Failed to load config file: {e}")
        return {}

# ===== INITIALIZATION =====

def initialize_components(settings: Settings, completion_client=None, page_fetcher=None):
    """Build the service graph from settings. Clients can be injected."""
    if completion_client is None:
        completion_client = CompletionClient(
            api_key=settings.completion_api_key,
            base_url=settings.completion_base_url,
            model=settings.completion_model,
            temperature=settings.completion_temperature,
            max_tokens=settings.completion_max_tokens,
            timeout=settings.completion_timeout,
            app_name=settings.app_name,
        )

    retry_policy = RetryPolicy(
        completion_client,
        max_attempts=settings.queue_max_attempts,
        base_delay=settings.queue_base_delay,
    )
    queue = SingleFlightQueue(retry_policy, pacing_delay=settings.queue_pacing_delay)
    service = CompletionService(queue, ResponseCache(settings.cache_ttl_seconds), completion_client)

    store = ChatStore(
        max_messages=settings.chats_max_messages,
        default_title=settings.chats_default_title,
    )
    store.create_chat()
    hub = ChatHub(store)

    if page_fetcher is None:
        page_fetcher = PageFetcher(
            timeout=settings.extraction_timeout,
            max_redirects=settings.extraction_max_redirects,
            min_text_length=settings.extraction_min_text_length,
        )

    return service, hub, page_fetcher


def setup_logging(settings: Settings) -> dict:
    """Setup logging configuration."""
    ColoredConsoleFormatter.use_colors = bool(settings.log_color)

    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "colored_console": {"()": ColoredConsoleFormatter},
            "json": {"()": JSONFormatter},
            "uvicorn_access": {"()": "utils.logging.formatters.UvicornAccessFormatter"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": settings.log_level,
                "formatter": "colored_console",
                "stream": "ext://sys.stdout",
            },
            "uvicorn_access": {
                "class": "logging.StreamHandler",
                "level": "INFO",
                "formatter": "uvicorn_access",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            settings.app_name: {
                "level": settings.log_level,
                "handlers": ["console"],
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["uvicorn_access"],
                "propagate": False,
            },
        },
    }

    # Add file handler if configured
    if settings.log_file_path:
        Path(settings.log_file_path).parent.mkdir(parents=True, exist_ok=True)
        log_config["handlers"]["file"] = {
            "class": "logging.FileHandler",
            "level": settings.log_level,
            "formatter": "json",
            "filename": settings.log_file_path,
            "mode": "a",
            "encoding": "utf-8",
        }
        log_config["loggers"][settings.app_name]["handlers"].append("file")

    dictConfig(log_config)
    return log_config

# ===== FASTAPI APPLICATION =====

@asynccontextmanager
async def lifespan(app: fastapi.FastAPI):
    """FastAPI lifespan event handler."""
    # Startup
    info(LogRecord(
        event=LogEvent.FASTAPI_STARTUP_COMPLETE.value,
        message="FastAPI application startup complete"
    ))

    if not app.state.completion_service.is_configured:
        warning(LogRecord(
            event=LogEvent.COMPLETION_API_KEY_MISSING.value,
            message="GROQ_API_KEY is not set; /api/chat will answer 503 until it is configured"
        ))

    yield

    # Shutdown
    info(LogRecord(
        event=LogEvent.FASTAPI_SHUTDOWN.value,
        message="FastAPI application shutting down"
    ))
    await app.state.completion_service.close()


def create_app(config_path: str = "config.yaml", completion_client=None, page_fetcher=None) -> fastapi.FastAPI:
    """Create FastAPI application with isolated components."""
    local_settings = Settings(config_path)

    # Initialize logging
    init_logger(local_settings.app_name)
    setup_logging(local_settings)

    service, hub, local_page_fetcher = initialize_components(local_settings, completion_client, page_fetcher)

    # Create FastAPI app
    app = fastapi.FastAPI(
        title=local_settings.app_name,
        version=local_settings.app_version,
        description="AI chat relay with a single-flight request queue, response cache and shared realtime chats",
        lifespan=lifespan,
    )

    # Store components in app state for access by handlers
    app.state.settings = local_settings
    app.state.completion_service = service
    app.state.chat_hub = hub
    app.state.page_fetcher = local_page_fetcher

    app.add_middleware(
        CORSMiddleware,
        allow_origins=local_settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(create_chat_router(service, local_settings))
    app.include_router(create_extraction_router(local_page_fetcher, local_settings))
    app.include_router(create_health_router(service, hub, local_settings.app_name, local_settings.app_version))
    app.include_router(create_realtime_router(hub))

    error_handler = RequestHandler(local_settings)

    # Exception handlers
    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        return await error_handler.log_and_return_error_response(request, exc, str(uuid.uuid4()))

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return await error_handler.log_and_return_error_response(request, exc, str(uuid.uuid4()), 400)

    @app.exception_handler(json.JSONDecodeError)
    async def json_error_handler(request: Request, exc: json.JSONDecodeError):
        return await error_handler.log_and_return_error_response(request, exc, str(uuid.uuid4()), 400)

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        return await error_handler.log_and_return_error_response(request, exc, str(uuid.uuid4()), 500)

    # Request logging middleware
    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        debug(LogRecord(
            event=LogEvent.HTTP_REQUEST.value,
            message=f"{request.method} {request.url.path}",
            data={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "process_time": round(process_time, 3),
            },
        ))

        return response

    return app

# ===== STARTUP BANNER =====

def display_startup_banner(settings: Settings):
    """Display startup banner with configuration info."""
    banner = """
═══════════════════════════════════════════════════════════════════
  ▄████▄ ██   ██  ▄███▄  ████████     ██████  ███████ ██       ▄███▄  ██    ██
 ██      ██   ██ ██   ██    ██        ██   ██ ██      ██      ██   ██  ██  ██
 ██      ███████ ███████    ██        ██████  █████   ██      ███████   ████
 ██      ██   ██ ██   ██    ██        ██   ██ ██      ██      ██   ██    ██
  ▀████▀ ██   ██ ██   ██    ██        ██   ██ ███████ ███████ ██   ██    ██
═══════════════════════════════════════════════════════════════════
"""

    _console.print(banner, style="bold green")

    # Log file display
    log_file_display = "Disabled"
    if settings.log_file_path:
        try:
            log_file_display = str(Path(settings.log_file_path).relative_to(PROJECT_ROOT))
        except ValueError:
            log_file_display = Path(settings.log_file_path).name

    key = settings.completion_api_key
    api_key_display = f"{key[:4]}...{key[-4:]}" if key else "Not configured"
    reload_status = "enabled" if settings.reload else "disabled"

    config_text = Text.assemble(
        ("   Version       : ", "default"),
        (f"v{settings.app_version}", "bold cyan"),
        ("\n   Model         : ", "default"),
        (settings.completion_model, "bold green"),
        ("\n   Provider      : ", "default"),
        (settings.completion_base_url, "default"),
        ("\n   API Key       : ", "default"),
        (api_key_display, "dim" if settings.completion_api_key else "bold red"),
        ("\n   Retries       : ", "default"),
        (f"{settings.queue_max_attempts} attempts, {settings.queue_base_delay}s base delay", "default"),
        ("\n   Cache TTL     : ", "default"),
        (f"{settings.cache_ttl_seconds}s", "default"),
        ("\n   Log Level     : ", "default"),
        (settings.log_level.upper(), "yellow"),
        ("\n   Log File      : ", "default"),
        (log_file_display, "dim"),
        ("\n   Auto Reload   : ", "default"),
        (reload_status, "green" if settings.reload else "dim"),
        ("\n   Listening on  : ", "default"),
        (f"http://{settings.host}:{settings.port}", "default"),
    )

    _console.print(Panel(
        config_text,
        title="Chat Relay Configuration",
        border_style="blue",
        expand=False,
    ))
    _console.print(Rule("Starting uvicorn server ...", style="dim blue"))

# ===== COMMAND LINE INTERFACE =====

def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Chat Relay')
    parser.add_argument(
        '--config',
        type=str,
        default='config.yaml',
        help='Path to configuration file (default: config.yaml)'
    )
    parser.add_argument(
        '--port',
        type=int,
        help='Port to run the server on (overrides config file)'
    )
    parser.add_argument(
        '--host',
        type=str,
        help='Host to bind the server to (overrides config file)'
    )
    return parser.parse_args()

# ===== GLOBAL VARIABLES =====

# Create app instance for uvicorn (simple and direct)
app = create_app()

def main():
    """Main entry point."""
    args = parse_args()

    global app
    app = create_app(args.config)

    app_settings = app.state.settings

    # Apply command line overrides
    if args.port:
        app_settings.port = args.port
    if args.host:
        app_settings.host = args.host

    display_startup_banner(app_settings)

    reload_includes = load_config(args.config).get('settings', {}).get(
        'reload_includes', ["config.yaml", "*.py"]
    ) if app_settings.reload else None

    # Setup log config for uvicorn
    log_config = setup_logging(app_settings)

    # Reload needs an import string; otherwise serve the app built from --config
    uvicorn.run(
        "main:app" if app_settings.reload else app,
        host=app_settings.host,
        port=app_settings.port,
        reload=app_settings.reload,
        reload_includes=reload_includes,
        log_config=log_config,
    )

if __name__ == "__main__":
    main()
