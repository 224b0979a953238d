# chatty/main.py
import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine

from chatty.api import auth, groups, messages, subscriptions, users
from chatty.config import AppConfig
from chatty.domain.exceptions import ChattyError, StorageFailure, Unauthenticated
from chatty.domain.interfaces import AbstractPubSub
from chatty.infrastructure.database import create_database
from chatty.infrastructure.event_dispatcher import EventDispatcher
from chatty.infrastructure.event_handlers import EventHandlers
from chatty.infrastructure.pubsub import InMemoryPubSub, RedisPubSub
from chatty.infrastructure.push_client import PushNotificationClient
from chatty.infrastructure.redis_client import RedisClient
from chatty.infrastructure.security import SecurityService
from chatty.infrastructure.seed_data import init_seed_data

RETRY_AFTER_SECONDS = "5"


class Application:
    def __init__(self, config: AppConfig):
        self.config = config
        self.logger = self.setup_logger()
        engine = create_async_engine(config.DATABASE_URL, echo=False)
        self.database = create_database(engine)
        self.security_service = SecurityService(config)

        self.redis_client: RedisClient | None = None
        if config.PUBSUB_BACKEND == "redis":
            self.redis_client = RedisClient(
                config.REDIS_HOST, config.REDIS_PORT, self.logger
            )
        self.pubsub = self.create_pubsub()

        self.push_client: PushNotificationClient | None = None
        if config.PUSH_ENABLED:
            self.push_client = PushNotificationClient(
                config.PUSH_URL,
                config.PUSH_SERVER_KEY,
                self.logger,
                timeout=config.PUSH_TIMEOUT_SECONDS,
            )

        self.event_dispatcher = EventDispatcher(self.logger)
        self.event_handlers = EventHandlers(
            self.pubsub, self.database, self.push_client, self.logger
        )

        # Register event handlers
        self.event_dispatcher.register(
            "MessageCreated", self.event_handlers.publish_message_created
        )
        self.event_dispatcher.register(
            "GroupCreated", self.event_handlers.publish_group_created
        )
        if self.push_client is not None:
            self.event_dispatcher.register(
                "MessageCreated", self.event_handlers.notify_message_created
            )

    def create_pubsub(self) -> AbstractPubSub:
        if self.redis_client is not None:
            return RedisPubSub(self.redis_client, self.logger)
        return InMemoryPubSub(self.logger, self.config.SUBSCRIPTION_QUEUE_SIZE)

    @asynccontextmanager
    async def lifespan(self, app: FastAPI):
        await self.database.connect()
        if self.redis_client is not None:
            await self.redis_client.connect()
        if self.config.SEED_DATA:
            await init_seed_data(self.database, self.security_service, self.logger)
        yield
        if self.push_client is not None:
            await self.push_client.close()
        if self.redis_client is not None:
            await self.redis_client.disconnect()
        await self.database.disconnect()

    def setup_logger(self):
        logger = logging.getLogger("ChattyAPI")
        logger.setLevel(self.config.LOG_LEVEL.upper())

        if not logger.handlers:
            c_handler = logging.StreamHandler(sys.stdout)
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            )
            c_handler.setFormatter(formatter)
            logger.addHandler(c_handler)

        return logger

    def create_app(self) -> FastAPI:
        app = FastAPI(
            title=self.config.PROJECT_NAME,
            version=self.config.PROJECT_VERSION,
            description=self.config.PROJECT_DESCRIPTION,
            openapi_url=f"{self.config.API_V1_STR}/openapi.json",
            lifespan=self.lifespan,
        )

        app.state.config = self.config
        app.state.security_service = self.security_service
        app.state.event_dispatcher = self.event_dispatcher
        app.state.database = self.database
        app.state.pubsub = self.pubsub
        app.state.logger = self.logger

        # Create routers
        app.include_router(
            auth.router, prefix=f"{self.config.API_V1_STR}/auth", tags=["auth"]
        )
        app.include_router(
            users.router, prefix=f"{self.config.API_V1_STR}/users", tags=["users"]
        )
        app.include_router(
            groups.router, prefix=f"{self.config.API_V1_STR}/groups", tags=["groups"]
        )
        app.include_router(
            messages.router,
            prefix=f"{self.config.API_V1_STR}/messages",
            tags=["messages"],
        )
        app.include_router(
            subscriptions.router,
            prefix=f"{self.config.API_V1_STR}/subscriptions",
            tags=["subscriptions"],
        )

        @app.get("/")
        async def root():
            return {"message": f"Welcome to the {self.config.PROJECT_NAME}"}

        self.register_exception_handlers(app)
        return app

    def register_exception_handlers(self, app: FastAPI) -> None:
        logger = self.logger

        @app.exception_handler(ChattyError)
        async def chatty_exception_handler(request: Request, exc: ChattyError):
            headers = None
            if isinstance(exc, Unauthenticated):
                headers = {"WWW-Authenticate": "Bearer"}
            elif isinstance(exc, StorageFailure):
                logger.error(f"Storage failure on {request.url.path}: {exc.detail}")
                headers = {"Retry-After": RETRY_AFTER_SECONDS}
            return JSONResponse(
                status_code=exc.status_code,
                content={"detail": exc.detail, "code": exc.code},
                headers=headers,
            )

        @app.exception_handler(SQLAlchemyError)
        async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
            logger.error(f"Storage error on {request.url.path}: {exc!s}")
            return JSONResponse(
                status_code=503,
                content={"detail": StorageFailure.default_detail, "code": StorageFailure.code},
                headers={"Retry-After": RETRY_AFTER_SECONDS},
            )

        @app.exception_handler(Exception)
        async def global_exception_handler(request: Request, exc: Exception):
            logger.exception(f"Unhandled error on {request.url.path}")
            return JSONResponse(
                status_code=500,
                content={"message": f"An unexpected error occurred: {str(exc)}"},
            )


def create(config: AppConfig | None = None) -> FastAPI:
    application = Application(config or AppConfig())
    app = application.create_app()
    application.logger.info("Application created and configured")

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("chatty.main:create", factory=True, host="127.0.0.1", port=8000)
