"""Model-backed code generation, review and explanation."""

import logging

from polymath.exceptions import ProviderError
from polymath.services.llm import LLMMessage, LLMService

logger = logging.getLogger(__name__)

GENERATE_PROMPT = """You are an expert code generator. Generate clean, well-documented, and production-ready code based on the user's description.

Guidelines:
- Write code in {language}
- Include comments explaining complex logic
- Follow best practices and conventions for the language
- Make the code modular and reusable
- Include error handling where appropriate
- If generating HTML/CSS/JS, create a complete working example"""

ANALYZE_PROMPT = """You are an expert code reviewer and debugger. Analyze the provided {language} code and:
1. Identify any bugs or issues
2. Suggest improvements for performance, readability, and maintainability
3. Point out security vulnerabilities if any
4. Provide corrected code if needed

Format your response as:
## Issues Found
- Issue 1
- Issue 2

## Improvements
- Improvement 1
- Improvement 2

## Corrected Code
```{language}
corrected code here
```"""

EXPLAIN_PROMPT = (
    "You are an expert programmer. Explain the provided code in clear, simple terms. "
    "Break it down into sections and explain what each part does."
)


def fenced(code: str, language: str) -> str:
    return f"```{language}\n{code}\n```"


class CodeAssistant:
    """Each operation is one model call with a fixed system prompt; output is returned raw."""

    def __init__(self, llm: LLMService):
        self.llm = llm

    async def _ask(self, messages: list[LLMMessage], failure: str) -> str:
        try:
            completion = await self.llm.complete(messages)
        except ProviderError as e:
            logger.error("%s: %s", failure, e.message)
            raise ProviderError(failure) from e
        return completion.content

    async def generate(self, description: str, language: str) -> str:
        return await self._ask(
            [
                {"role": "system", "content": GENERATE_PROMPT.format(language=language)},
                {"role": "user", "content": description},
            ],
            "Failed to generate code",
        )

    async def analyze(self, code: str, language: str, issues: str | None = None) -> str:
        user_message = f"Code:\n{fenced(code, language)}"
        if issues:
            user_message += f"\n\nSpecific issues to check: {issues}"

        return await self._ask(
            [
                {"role": "system", "content": ANALYZE_PROMPT.format(language=language)},
                {"role": "user", "content": user_message},
            ],
            "Failed to analyze code",
        )

    async def explain(self, code: str, language: str) -> str:
        return await self._ask(
            [
                {"role": "system", "content": EXPLAIN_PROMPT},
                {"role": "user", "content": f"Explain this {language} code:\n{fenced(code, language)}"},
            ],
            "Failed to explain code",
        )
