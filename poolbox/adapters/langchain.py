"""LangChain adapter for poolbox.

Every tool of the registry becomes one LangChain BaseTool bound to a
session. Calls go through the ToolDispatcher, so the command gate, the
approval station and argument validation apply exactly as for any other
caller. Tools return the ToolResponse as a JSON string.
"""

import json
from typing import Any, Type

from langchain_core.tools import BaseTool
from pydantic import BaseModel

from poolbox.runtime.box import DEFAULT_SESSION
from poolbox.runtime.dispatcher import ToolDispatcher
from poolbox.runtime.registry import ToolSpec


class BoxTool(BaseTool):
    """LangChain tool that forwards one registered tool to a session's box."""

    name: str
    description: str
    args_schema: Type[BaseModel]

    # Custom fields - use Any to avoid Pydantic validation issues
    dispatcher: Any
    session_id: str = DEFAULT_SESSION
    tool_name: str

    def __init__(self, dispatcher: ToolDispatcher, spec: ToolSpec, session_id: str = DEFAULT_SESSION, **kwargs):
        """Initialize from a registry entry.

        Args:
            dispatcher: Dispatcher the calls go through
            spec: Registered tool to expose
            session_id: Session the calls belong to
        """
        super().__init__(
            name=spec.name,
            description=spec.description,
            args_schema=spec.args_schema,
            dispatcher=dispatcher,
            session_id=session_id,
            tool_name=spec.name,
            **kwargs,
        )

    def _run(self, **kwargs: Any) -> str:
        """Dispatch the call and return the JSON-encoded ToolResponse."""
        args = {k: v for k, v in kwargs.items() if v is not None}
        response = self.dispatcher.call(self.session_id, self.tool_name, args)
        return json.dumps(response.to_dict(), indent=2)


def build_langchain_tools(dispatcher: ToolDispatcher, session_id: str = DEFAULT_SESSION) -> list[BaseTool]:
    """Build LangChain tools for the tools currently visible in a session.

    Discovery tools follow the session's disclosure tier, so rebuild the list
    after pools are mounted or refreshed.

    Args:
        dispatcher: Dispatcher with its BoxManager and registry
        session_id: Session the tools act on

    Returns:
        List of BoxTool instances

    Example:
        >>> dispatcher = ToolDispatcher(BoxManager(config), gate=CommandGate())
        >>> tools = build_langchain_tools(dispatcher, "s1")
        >>> [t.name for t in tools][:3]
        ['ls', 'read', 'write']
    """
    box = dispatcher.manager.get_box(session_id)
    return [
        BoxTool(dispatcher, spec, session_id=session_id)
        for spec in dispatcher.registry.visible_tools(box)
    ]
