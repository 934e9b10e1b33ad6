"""
Move providers for chess move generation.

A provider turns a prompt into raw model text. Two kinds exist: native vendor
CLIs run as subprocesses, and the OpenRouter chat-completion API. Both expose
the same ``invoke(prompt, timeout_s)`` coroutine and are selected from the
namespace of the provider id.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

import openai
from openai import AsyncOpenAI

from ..core.models import Config, ModelSpec

logger = logging.getLogger(__name__)

# A complete answer has been written once a MOVE: line appears
MOVE_LINE_REGEX = re.compile(r"^\s*MOVE:\s*\S", re.IGNORECASE)

STDERR_LIMIT = 500
STREAM_LIMIT = 1024 * 1024

CLI_NAMESPACES = ("anthropic", "openai", "google", "opencode")


class LLMProviderError(Exception):
    """Custom exception for LLM provider errors."""
    pass


class ProviderTimeout(LLMProviderError):
    """The provider did not answer within its time budget."""
    pass


class ProviderFailure(LLMProviderError):
    """The provider answered with an error (non-zero exit, HTTP error, error payload)."""
    pass


class ProviderConfigError(LLMProviderError):
    """The provider cannot be built from the given id or environment."""
    pass


class BaseMoveProvider(ABC):
    """Abstract base class for move providers."""

    kind = "base"

    def __init__(self, provider_id: str, default_timeout_s: float):
        self.provider_id = provider_id
        self.default_timeout_s = default_timeout_s

    @abstractmethod
    async def invoke(self, prompt: str, timeout_s: Optional[float] = None) -> str:
        """
        Send a prompt and return the raw text answer.

        Args:
            prompt: Complete prompt text
            timeout_s: Wall-clock budget in seconds (provider default if None)

        Returns:
            Raw text response

        Raises:
            ProviderTimeout: If the budget expired; the call has been terminated
            ProviderFailure: If the provider reported an error
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.provider_id!r})"


def is_cli_model(provider_id: str) -> bool:
    """True if the provider id is served by a native vendor CLI."""
    return provider_id.split("/", 1)[0].lower() in CLI_NAMESPACES and "/" in provider_id


def get_cli_command(provider_id: str) -> Tuple[str, List[str]]:
    """
    Map a provider id to the CLI command and arguments.

    Routing:
        anthropic/*  -> claude -p
        openai/*     -> codex exec
        google/*     -> gemini -p
        opencode/*   -> opencode run

    Raises:
        ProviderConfigError: If the namespace has no CLI
    """
    namespace, _, model = provider_id.partition("/")
    namespace = namespace.lower()

    if not model:
        raise ProviderConfigError(f"Provider id '{provider_id}' has no model part")

    if namespace == "anthropic":
        # The claude CLI spells versions with dashes: claude-sonnet-4.5 -> claude-sonnet-4-5
        cli_model = model.replace(".", "-")
        return "claude", ["-p", "--model", cli_model, "--tools", "", "--no-session-persistence"]

    if namespace == "openai":
        return "codex", ["exec", "-m", model, "--skip-git-repo-check", "--ephemeral", "-"]

    if namespace == "google":
        return "gemini", ["-p", "", "-m", model, "-o", "text"]

    if namespace == "opencode":
        # opencode expects the full "opencode/<model>" id
        return "opencode", ["run", "-m", provider_id, "--format", "default"]

    available = ", ".join(CLI_NAMESPACES)
    raise ProviderConfigError(f"Not a CLI model: '{provider_id}'. CLI namespaces: {available}")


class CLIProvider(BaseMoveProvider):
    """Vendor CLI run as a subprocess, prompt on stdin, answer on stdout."""

    kind = "cli"

    # Unset CLAUDECODE so the claude CLI does not refuse to start inside another session
    DEFAULT_ENV_OVERRIDES: Dict[str, Optional[str]] = {"CLAUDECODE": None}

    def __init__(
        self,
        provider_id: str,
        default_timeout_s: float = 480.0,
        env_overrides: Optional[Dict[str, Optional[str]]] = None,
    ):
        super().__init__(provider_id, default_timeout_s)
        self.command, self.args = get_cli_command(provider_id)
        self.env_overrides = dict(self.DEFAULT_ENV_OVERRIDES if env_overrides is None else env_overrides)

    def build_env(self) -> Dict[str, str]:
        """Environment for one invocation; None values remove the variable."""
        env = dict(os.environ)
        for key, value in self.env_overrides.items():
            if value is None:
                env.pop(key, None)
            else:
                env[key] = value
        return env

    async def invoke(self, prompt: str, timeout_s: Optional[float] = None) -> str:
        """Run the CLI once and return its stdout."""
        timeout_s = timeout_s or self.default_timeout_s

        try:
            proc = await asyncio.create_subprocess_exec(
                self.command,
                *self.args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self.build_env(),
                limit=STREAM_LIMIT,
            )
        except OSError as e:
            raise ProviderFailure(f"Cannot start {self.command}: {e}") from e

        try:
            return await asyncio.wait_for(self._communicate(proc, prompt), timeout=timeout_s)
        except asyncio.TimeoutError:
            raise ProviderTimeout(f"CLI process timed out after {timeout_s}s")
        finally:
            await _terminate(proc)

    async def _communicate(self, proc: asyncio.subprocess.Process, prompt: str) -> str:
        stderr_task = asyncio.create_task(proc.stderr.read())
        try:
            try:
                proc.stdin.write(prompt.encode("utf-8"))
                await proc.stdin.drain()
                proc.stdin.close()
            except (BrokenPipeError, ConnectionResetError) as e:
                # The exit code below tells what went wrong
                logger.debug(f"{self.command} closed stdin early: {e}")

            chunks: List[str] = []
            while True:
                try:
                    line = await proc.stdout.readline()
                except ValueError as e:
                    raise ProviderFailure(f"{self.command} output line too long: {e}") from e
                if not line:
                    break
                text = line.decode("utf-8", errors="replace")
                chunks.append(text)
                if MOVE_LINE_REGEX.match(text):
                    logger.debug(f"{self.provider_id}: move marker seen, stopping {self.command} early")
                    return "".join(chunks)

            exit_code = await proc.wait()
            stderr = (await stderr_task).decode("utf-8", errors="replace")
            if exit_code != 0:
                raise ProviderFailure(
                    f"CLI exited with code {exit_code}: {stderr[:STDERR_LIMIT]}"
                )
            return "".join(chunks)
        finally:
            if not stderr_task.done():
                stderr_task.cancel()


async def _terminate(proc: asyncio.subprocess.Process) -> None:
    """Kill the process if it is still running and reap it."""
    if proc.returncode is not None:
        return
    try:
        proc.kill()
    except ProcessLookupError:
        pass
    await proc.wait()


class OpenRouterProvider(BaseMoveProvider):
    """OpenRouter chat-completion API through the OpenAI-compatible endpoint."""

    kind = "api"

    def __init__(
        self,
        provider_id: str,
        default_timeout_s: float = 300.0,
        temperature: float = 0.3,
        api_key: Optional[str] = None,
        base_url: str = "https://openrouter.ai/api/v1",
        client: Optional[AsyncOpenAI] = None,
        default_headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(provider_id, default_timeout_s)
        self.temperature = temperature

        if client is None:
            api_key = api_key or os.getenv("OPENROUTER_API_KEY")
            if not api_key:
                raise ProviderConfigError(
                    "OPENROUTER_API_KEY environment variable is required for OpenRouter models"
                )
            client = AsyncOpenAI(
                api_key=api_key,
                base_url=base_url,
                max_retries=0,
                default_headers=default_headers,
            )
        self.client = client

    async def invoke(self, prompt: str, timeout_s: Optional[float] = None) -> str:
        """Issue one chat completion and return the first choice's text."""
        timeout_s = timeout_s or self.default_timeout_s

        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.provider_id,
                    messages=[{"role": "user", "content": prompt}],
                    temperature=self.temperature,
                    timeout=timeout_s,
                ),
                timeout=timeout_s,
            )
        except (asyncio.TimeoutError, openai.APITimeoutError):
            raise ProviderTimeout(f"OpenRouter request timed out after {timeout_s}s")
        except openai.APIStatusError as e:
            raise ProviderFailure(f"OpenRouter HTTP {e.status_code}: {_error_body(e)}") from e
        except openai.APIError as e:
            raise ProviderFailure(f"OpenRouter request failed: {e}") from e

        # OpenRouter can report upstream errors inside a 200 response
        error = getattr(response, "error", None)
        if error:
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise ProviderFailure(f"OpenRouter error: {message}")

        choices = getattr(response, "choices", None)
        if not choices:
            raise ProviderFailure("OpenRouter returned no choices")

        message = choices[0].message
        return (message.content if message else None) or ""


def _error_body(error: openai.APIStatusError) -> str:
    body = error.body if error.body is not None else error.message
    return str(body)[:STDERR_LIMIT]


def create_provider(provider_id: str, config: Optional[Config] = None) -> BaseMoveProvider:
    """
    Create the provider serving a provider id.

    Args:
        provider_id: Namespaced id such as "anthropic/claude-sonnet-4.5"
        config: Global configuration (defaults if None)

    Returns:
        CLIProvider for CLI namespaces, OpenRouterProvider otherwise
    """
    config = config or Config()

    if is_cli_model(provider_id):
        provider: BaseMoveProvider = CLIProvider(provider_id, default_timeout_s=config.cli_timeout)
    else:
        provider = OpenRouterProvider(
            provider_id,
            default_timeout_s=config.api_timeout,
            temperature=config.llm_temperature,
            base_url=config.openrouter_base_url,
            default_headers={
                "HTTP-Referer": config.openrouter_referer,
                "X-Title": config.openrouter_title,
            },
        )

    logger.info(f"Initialized {provider.kind} provider for {provider_id}")
    return provider


def parse_model_spec(spec_string: str) -> ModelSpec:
    """
    Parse a model specification string into a ModelSpec.

    Format: "provider/model" or "Display Name=provider/model". Without a display
    name the model part of the id is used.

    Raises:
        ValueError: If the specification is empty or malformed
    """
    raw = spec_string.strip()
    if not raw:
        raise ValueError("Empty model specification")

    if "=" in raw:
        name, provider_id = (part.strip() for part in raw.split("=", 1))
    else:
        name, provider_id = "", raw

    if "/" not in provider_id:
        raise ValueError(f"Provider id '{provider_id}' must look like 'namespace/model'")

    if not name:
        name = provider_id.split("/", 1)[1]

    return ModelSpec(name=name, provider_id=provider_id)
