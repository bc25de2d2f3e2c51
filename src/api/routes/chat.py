"""Chat API routes - retrieval-augmented chat completions."""

import logging
import time
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from src.api.dependencies import get_rag_chat_use_case, limiter
from src.application.rag_chat.dto import RagChatRequest
from src.application.rag_chat.use_case import RagChatUseCase
from src.domain.errors import ModelError
from src.domain.ports.llm import LLMMessage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["chat"])


class ChatChoice(BaseModel):
    index: int = 0
    message: LLMMessage
    finish_reason: str = "stop"


class RetrievedChunk(BaseModel):
    text: str
    score: float
    source_id: str = ""


class WebResult(BaseModel):
    url: str
    site_name: str
    text_content: str


class ChatCompletionResponse(BaseModel):
    """OpenAI-style completion plus the context used to build the prompt."""

    id: str
    object: str = "chat.completion"
    created: int
    choices: list[ChatChoice]
    rag_policy: str
    retrieved: list[RetrievedChunk]
    web_results: list[WebResult]
    degraded: dict[str, str]


@router.post("/chat/completions", response_model=ChatCompletionResponse)
@limiter.limit("60/minute")
async def chat_completions(
    request: Request,
    body: RagChatRequest,
    use_case: RagChatUseCase = Depends(get_rag_chat_use_case),
) -> ChatCompletionResponse:
    """Retrieve context, merge it into the conversation and complete."""
    try:
        result = await use_case.execute(body)
    except ModelError as e:
        logger.warning("Chat completion failed: %s", e)
        raise HTTPException(status_code=502, detail=f"Chat model error: {e}")

    return ChatCompletionResponse(
        id=f"chatcmpl-{uuid.uuid4().hex}",
        created=int(time.time()),
        choices=[ChatChoice(message=LLMMessage(role="assistant", content=result.content))],
        rag_policy=use_case.merger.effective_policy.value,
        retrieved=[
            RetrievedChunk(text=c.chunk_text, score=c.score, source_id=c.source_id) for c in result.retrieved
        ],
        web_results=[
            WebResult(url=r.url, site_name=r.site_name, text_content=r.text_content)
            for r in result.search_output.results
        ],
        degraded=result.trace.degraded,
    )
