"""
Block catalogue endpoint
"""
from fastapi import APIRouter
from typing import List

from tai_test.schemas.question import BLOCKS, BlockInfo

router = APIRouter(prefix="/api/blocks", tags=["blocks"])


@router.get("", response_model=List[BlockInfo])
async def list_blocks():
    return list(BLOCKS.values())
