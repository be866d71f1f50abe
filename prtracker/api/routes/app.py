from fastapi import APIRouter

router = APIRouter()


@router.get("/")
async def welcome():
    return {"message": "The PR Tracker API is live!"}


@router.get("/api/health")
async def health():
    return {"status": "ok"}
