from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from server.core.ChatService import ChatServiceError
from shared.models.chat import ChatCompletionRequest, ChatCompletionResponse

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.post("", response_model=ChatCompletionResponse, response_model_exclude_none=True)
async def chat(request: Request, body: ChatCompletionRequest) -> ChatCompletionResponse | JSONResponse:
    """Answer one chat turn about the document collection.

    Args:
        request (Request): FastAPI request (provides app.state.chat_service).
        body (ChatCompletionRequest): JSON body with message and conversationHistory.

    Returns:
        ChatCompletionResponse: {"message": ...} on success, {"error": ...} with status 500 otherwise.
    """
    chat_service = request.app.state.chat_service
    try:
        answer = await chat_service.answer(body)
    except ChatServiceError as e:
        return JSONResponse(status_code=500, content=ChatCompletionResponse(error=str(e)).model_dump(exclude_none=True))
    return ChatCompletionResponse(message=answer)
