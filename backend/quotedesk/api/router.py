from fastapi import APIRouter

from quotedesk.api.routes import quotes

api_router = APIRouter()
api_router.include_router(quotes.router)
