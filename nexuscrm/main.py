import asyncio
import logging
import sys
from nexuscrm.context import AppContext

logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO,
    handlers=[logging.StreamHandler(sys.stdout)]
)
# supabase/httpx log every request at INFO
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


async def run() -> None:
    """Bring the application context up, report the session and tear it down."""
    context = await AppContext.create()
    async with context:
        user = context.session.user
        if user:
            logger.info(f"Restored session for {user.email} ({user.role.value})")
        else:
            logger.info("No existing session, showing the welcome screen")


def main():
    asyncio.run(run())

if __name__ == '__main__':
    main()
