from fastapi import APIRouter

from mediahub.core.api_response import response_success

router = APIRouter()


@router.get("", summary="存活检查")
async def health():
    return response_success(data={"status": "ok"})
