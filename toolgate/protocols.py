"""
toolgate Protocols - Abstract interfaces for dependency injection

These protocols define the contracts that external implementations must fulfill.
This allows toolgate to work with any chat model provider.
"""

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable


@runtime_checkable
class LLMClientProtocol(Protocol):
    """
    Abstract interface for LLM clients

    Implement this protocol to integrate any LLM provider (OpenAI, Anthropic, etc.)

    Example:
        class MyLLMClient:
            async def chat_completion(
                self,
                messages: List[Dict[str, Any]],
                tools: Optional[List[Dict]] = None,
                config: Optional[Dict] = None
            ) -> Any:
                response = await openai.chat.completions.create(
                    model="gpt-4o",
                    messages=messages,
                    tools=tools
                )
                return response
    """

    async def chat_completion(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict]] = None,
        config: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Call LLM for chat completion

        Args:
            messages: List of message dicts with 'role' and 'content'
            tools: Optional list of tool schemas (OpenAI format)
            config: Optional configuration (model, temperature, etc.)

        Returns:
            Either an object with ``content`` and ``tool_calls`` attributes,
            or an OpenAI-compatible response with choices[0].message
        """
        ...
