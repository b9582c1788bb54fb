from fastapi import APIRouter

from goalcast.api.ai import router as ai_router
from goalcast.api.auth import router as auth_router
from goalcast.api.challenges import router as challenges_router
from goalcast.api.checkins import router as checkins_router
from goalcast.api.feed import router as feed_router
from goalcast.api.goals import router as goals_router
from goalcast.api.realtime import router as realtime_router
from goalcast.api.stats import router as stats_router
from goalcast.api.users import router as users_router
from goalcast.api.users import spotlight_router

router = APIRouter(prefix="/api")
router.include_router(auth_router)
router.include_router(goals_router)
router.include_router(checkins_router)
router.include_router(feed_router)
router.include_router(users_router)
router.include_router(spotlight_router)
router.include_router(challenges_router)
router.include_router(stats_router)
router.include_router(ai_router)

__all__ = ["router", "realtime_router"]
