"""Page generation API routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from memberpages.dependencies import CurrentPrincipal
from memberpages.exceptions import AdminRequiredError
from memberpages.generator.schemas import GenerateRequest
from memberpages.generator.service import PageGenerator, get_page_generator
from memberpages.pages.schemas import PageResponse

router = APIRouter()


@router.post("/generate-page", response_model=PageResponse, response_model_exclude_none=True)
async def generate_page(
    data: GenerateRequest,
    principal: CurrentPrincipal,
    generator: Annotated[PageGenerator, Depends(get_page_generator)],
):
    """Build a page structure from an instruction. Nothing is saved."""
    try:
        page = await generator.generate(principal, data.instruction)
    except AdminRequiredError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return PageResponse(page=page)
