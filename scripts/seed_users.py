import asyncio
import logging

from tigermood import ApiClient, ValidationError
from tigermood.config import settings
from tigermood.log import configure_logging

DEMO_USERS = [
    ("linh@example.com", "linh123", "Linh"),
    ("minh@example.com", "minh123", "Minh"),
]

logger = logging.getLogger("seed_users")

async def main():
    configure_logging(settings.log_level)
    for email, password, name in DEMO_USERS:
        async with ApiClient() as api:
            try:
                await api.register(email, password, name)
            except ValidationError as ex:
                if ex.status_code != 409:
                    raise
                await api.login(email, password)
            await api.create_post({"imageUrl": "https://cdn.example.com/demo.jpg", "caption": f"Hello from {name}"})
            await api.create_wish(f"{name} wishes everyone a calm year")
            me = await api.get_current_user()
            logger.info("Seeded %s with %d points", me["email"], me["points"])

if __name__ == "__main__":
    asyncio.run(main())
