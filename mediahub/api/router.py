from fastapi import APIRouter

from mediahub.api.routes import file_router, health_router

api_router = APIRouter()

# 每个元素都是一个包含 router, prefix, 和 tags 的字典
routers_to_include = [
    {"router": file_router.router, "prefix": "/files", "tags": ["files"]},
    {"router": health_router.router, "prefix": "/health", "tags": ["health"]},
]

for route_config in routers_to_include:
    api_router.include_router(**route_config)
