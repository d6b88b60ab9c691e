"""Admin API routes.

Every route here requires an admin principal. Sub-routers:
- season_management: membership add/remove/assignment, create+add, roster
- deletions: cascade deletes for leagues, seasons, clubs and players
"""

from fastapi import APIRouter, Depends

from xblade.routes.admin.deletions import router as deletions_router
from xblade.routes.admin.season_management import router as season_management_router
from xblade.routes.deps import require_admin

router = APIRouter(prefix="/api/v1/admin", tags=["admin"], dependencies=[Depends(require_admin)])

router.include_router(season_management_router)
router.include_router(deletions_router)
