from fastapi import APIRouter

from app.api.auth import router as auth_router
from app.api.chat import router as chat_router
from app.api.config import router as config_router
from app.api.directory import router as directory_router

router = APIRouter()

router.include_router(auth_router)
router.include_router(config_router)
router.include_router(directory_router)
router.include_router(chat_router)


@router.get("/", tags=["root"])
def read_root() -> dict[str, str]:
    return {"message": "Welcome to the OrgChat API"}
