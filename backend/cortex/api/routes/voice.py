"""Voice command endpoint backed by the retrieval-augmented assistant pipeline.

Endpoints:
    voice_command_preflight(): Answer CORS preflight requests without touching the pipeline.
    process_voice_command(request, service): Run one command and return the success or error envelope.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from sqlmodel.ext.asyncio.session import AsyncSession

from cortex.db.session import get_session
from cortex.schemas import VoiceCommandResponse
from cortex.services.assistant import VoiceCommandService

router = APIRouter(tags=["assistant"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


def get_voice_command_service(session: AsyncSession = Depends(get_session)) -> VoiceCommandService:
    return VoiceCommandService(session)


@router.options("/process-voice-command")
async def voice_command_preflight() -> Response:
    return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)


@router.post("/process-voice-command")
async def process_voice_command(
    request: Request,
    service: VoiceCommandService = Depends(get_voice_command_service),
) -> JSONResponse:
    try:
        body = await request.json()
    except ValueError:
        body = None

    result = await service.handle(body)
    if isinstance(result, VoiceCommandResponse):
        exclude = {"embeddings"} if result.embeddings is None else None
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content=result.model_dump(mode="json", by_alias=True, exclude=exclude),
            headers=CORS_HEADERS,
        )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=result.model_dump(mode="json", by_alias=True),
        headers=CORS_HEADERS,
    )
