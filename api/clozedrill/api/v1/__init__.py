"""
API v1 router aggregation.
"""
from fastapi import APIRouter
from clozedrill.api.v1.endpoints import cards, practice

api_router = APIRouter()

# Each router already defines its own prefix
api_router.include_router(practice.router)
api_router.include_router(cards.router)
