"""
Client script endpoints.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from ..config import get_config
from ..scripts import render_auth_script, render_setup_script

router = APIRouter(tags=["scripts"])


@router.get("/auth.sh", response_class=PlainTextResponse)
async def auth_sh():
    return render_auth_script(get_config().url)


@router.get("/setup.sh", response_class=PlainTextResponse)
async def setup_sh():
    return render_setup_script(get_config().url)
