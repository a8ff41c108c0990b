from fastapi import APIRouter

from app.schemas.networking import NetworkingRequest, NetworkingResponse
from app.services.networking_service import generate_outreach_message

router = APIRouter()


@router.post("/networking/generate", response_model=NetworkingResponse)
async def networking_generate(payload: NetworkingRequest):
    return generate_outreach_message(payload)
