"""
Hello World Tool

Demonstration tool shipped with the installer sample definition.
"""

import logging
from typing import Any, Dict

from ..base import LocalTool

logger = logging.getLogger(__name__)

MESSAGE = "Hello from BMAD Tools!"


class HelloWorldTool(LocalTool):
    """Prints and returns a greeting."""

    @property
    def name(self) -> str:
        return "hello-world"

    @property
    def description(self) -> str:
        return "Demonstration tool that prints a message."

    async def run(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        logger.info(MESSAGE)
        return {"message": MESSAGE}
