# app/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tigermood.log import configure_logging
from app.core.config import Settings, settings as default_settings
from app.core.security import hash_password
from app.repos.inmemory import InMemoryRepo
from app.responses import install_error_handlers, ok
from app.routers import admin, auth, mood_cards, posts, rewards, uploads, wishes

logger = logging.getLogger(__name__)

DEMO_REWARDS = [
    {"name": "Coffee voucher", "description": "One drink at a partner cafe",
     "points_required": 100, "image_url": "/rewards/coffee.jpg", "is_active": True, "max_per_user": 2},
    {"name": "Lunchbox", "description": "Tiger thermal lunchbox",
     "points_required": 300, "image_url": "/rewards/lunch.jpg", "is_active": True, "max_per_user": 1},
    {"name": "Cooking course", "description": "Weekend cooking class",
     "points_required": 1000, "image_url": "/rewards/course.jpg", "is_active": True, "max_per_user": None},
]

async def seed(repo: InMemoryRepo, settings: Settings):
    if not await repo.find_user_by_email(settings.admin_email):
        await repo.create_user(settings.admin_email, hash_password(settings.admin_password),
                               "Administrator", role="ADMIN")
    if settings.seed_demo and not repo.rewards:
        for reward in DEMO_REWARDS:
            await repo.create_reward(dict(reward))
    logger.info("Seeded %d users, %d rewards", len(repo.users), len(repo.rewards))


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await seed(app.state.repo, settings)
        yield

    app = FastAPI(lifespan=lifespan, title="Tiger Mood Corner API")
    app.state.settings = settings
    app.state.repo = InMemoryRepo()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)

    # ---------------- Include routers ----------------
    prefix = settings.api_prefix
    app.include_router(auth.router, prefix=prefix)
    app.include_router(posts.router, prefix=prefix)
    app.include_router(mood_cards.router, prefix=prefix)
    app.include_router(rewards.router, prefix=prefix)
    app.include_router(rewards.redeems_router, prefix=prefix)
    app.include_router(wishes.router, prefix=prefix)
    app.include_router(uploads.router, prefix=prefix)
    app.include_router(uploads.analytics_router, prefix=prefix)
    app.include_router(admin.router, prefix=prefix)

    # Health
    @app.get("/health")
    def health():
        return ok({"ok": True})

    return app


app = create_app()
