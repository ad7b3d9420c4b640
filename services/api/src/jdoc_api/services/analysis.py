"""接诊录音转写与结构化分析。

先用语音转写模型得到文本，再用 JSON 模式的对话模型抽取病历字段。
整个调用受统一超时约束，不做自动重试；超时或服务报错都作为一次性失败返回给调用方。
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

from openai import AsyncOpenAI, OpenAIError

from jdoc_api.core.config import Settings
from jdoc_api.core.errors import UpstreamUnavailableError

logger = logging.getLogger(__name__)

PROCEDURE_NAMES = ("HILT", "SIS", "УВТ", "ИРТ", "ВТЭС", "PRP", "Кинезиотерапия")

_SYSTEM_PROMPT = """Ты медицинский ассистент. Извлеки факты из расшифровки приёма врача, ничего не додумывай.
Если сведений нет, пиши "Не указано". Верни только JSON с полями:
patientName, dob, visitDate (сегодня {today}), complaints, anamnesis, diagnosis, treatment, recommendations,
procedures: объект с числом сеансов по каждой процедуре: {procedures}.
Сопоставляй разговорные названия с процедурами (лазер = HILT, магнит = SIS, ФТЭС = ВТЭС, ПРП = PRP).
Если процедура не упомянута, ставь 0. Пиши по-русски."""


@dataclass(frozen=True)
class AnalysisResult:
    """转写文本与抽取字段。"""

    text: str
    fields: dict[str, Any]


class AnalysisService:
    """调用外部模型服务完成转写与分析。"""

    def __init__(self, client: AsyncOpenAI, settings: Settings) -> None:
        self._client = client
        self._settings = settings

    def _system_prompt(self) -> str:
        procedures = ", ".join(f'"{name}"' for name in PROCEDURE_NAMES)
        return _SYSTEM_PROMPT.format(today=date.today().strftime("%d.%m.%Y"), procedures=procedures)

    async def _transcribe(self, filename: str, content: bytes) -> str:
        transcription = await self._client.audio.transcriptions.create(
            model=self._settings.openai_transcription_model,
            file=(filename, content),
            language=self._settings.transcription_language,
        )
        return (transcription.text or "").strip()

    async def _extract(self, text: str) -> dict[str, Any]:
        completion = await self._client.chat.completions.create(
            model=self._settings.openai_analysis_model,
            messages=[
                {"role": "system", "content": self._system_prompt()},
                {"role": "user", "content": text},
            ],
            response_format={"type": "json_object"},
            temperature=0,
        )
        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            raise UpstreamUnavailableError("analysis", "empty completion")
        try:
            fields = json.loads(content)
        except ValueError as exc:
            raise UpstreamUnavailableError("analysis", "completion is not valid JSON") from exc
        if not isinstance(fields, dict):
            raise UpstreamUnavailableError("analysis", "completion is not a JSON object")
        return fields

    async def _run(self, filename: str, content: bytes) -> AnalysisResult:
        text = await self._transcribe(filename, content)
        if not text:
            raise UpstreamUnavailableError("transcription", "empty transcript")
        logger.info("transcription received chars=%s", len(text))
        return AnalysisResult(text=text, fields=await self._extract(text))

    async def analyze(self, filename: str, content: bytes) -> AnalysisResult:
        """转写并分析一段接诊录音。"""
        timeout = self._settings.analysis_timeout_seconds
        try:
            return await asyncio.wait_for(self._run(filename, content), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise UpstreamUnavailableError("analysis", f"timed out after {timeout}s") from exc
        except OpenAIError as exc:
            raise UpstreamUnavailableError("analysis", str(exc)) from exc


def build_analysis_client(settings: Settings) -> AsyncOpenAI:
    """构造模型服务客户端，重试交由调用方决定。"""
    if not settings.openai_api_key:
        raise UpstreamUnavailableError("analysis", "JD_OPENAI_API_KEY is not configured")
    return AsyncOpenAI(
        api_key=settings.openai_api_key,
        timeout=settings.analysis_timeout_seconds,
        max_retries=0,
    )
