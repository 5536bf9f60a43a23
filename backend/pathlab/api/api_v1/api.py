"""V1 API router aggregation"""
from fastapi import APIRouter

from pathlab.api.api_v1.endpoints import auth, dicts, kits, samples

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])
api_router.include_router(dicts.router, prefix="/dicts", tags=["Dictionaries"])
api_router.include_router(kits.router, prefix="/kits", tags=["Kit inventory"])
api_router.include_router(samples.router, prefix="/samples", tags=["Samples"])
