# lesson_approval/services/text_generation.py
import logging
from typing import Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from lesson_approval.core.config import settings

logger = logging.getLogger(__name__)

TEAM_ANALYSIS_PROMPT = (
    "Với vai trò là một trợ lý quản lý giáo dục cho Tổ trưởng Chuyên môn, hãy phân tích dữ liệu "
    "nộp giáo án của các giáo viên trong tổ sau đây.\n\nDữ liệu:\n{stats}\n\n"
    "Báo cáo của bạn cần:\n"
    "1. **Tóm tắt chung:** nhận xét ngắn gọn về hiệu suất chung của tổ.\n"
    "2. **Điểm sáng:** ghi nhận các giáo viên có thành tích tốt.\n"
    "3. **Cần quan tâm:** nhận diện các giáo viên có thể cần hỗ trợ.\n"
    "4. **Đề xuất hành động:** 2-3 gợi ý cụ thể, mang tính xây dựng.\n\n"
    "Sử dụng ngôn ngữ chuyên nghiệp, tích cực và định dạng Markdown."
)


class TextGenerator:
    """
    Client for an Ollama-compatible chat endpoint.

    Output is advisory prose for people to read. Nothing in the workflow
    reads it back.
    """

    def __init__(self, base_url: Optional[str] = None, model: Optional[str] = None,
                 client: Optional[httpx.AsyncClient] = None):
        self.base = (base_url or settings.OLLAMA_BASE_URL).rstrip("/")
        self.model = model or settings.OLLAMA_MODEL
        self._client = client or httpx.AsyncClient(
            base_url=self.base,
            timeout=httpx.Timeout(
                connect=settings.HTTP_CONNECT_TIMEOUT,
                read=settings.HTTP_READ_TIMEOUT,
                write=settings.HTTP_READ_TIMEOUT,
                pool=settings.HTTP_CONNECT_TIMEOUT,
            ),
        )

    async def aclose(self):
        await self._client.aclose()

    @retry(stop=stop_after_attempt(settings.RETRY_ATTEMPTS), wait=wait_fixed(0.4),
           retry=retry_if_exception_type(httpx.TransportError), reraise=True)
    async def generate(self, prompt: str, system_prompt: str = "") -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        r = await self._client.post("/api/chat", json={
            "model": self.model,
            "messages": messages,
            "stream": False,
        })
        r.raise_for_status()
        data = r.json()
        return data.get("message", {}).get("content", "")

    async def team_analysis(self, teacher_rows: list[dict]) -> str:
        stats = "\n".join(
            f"- {row['teacher_name']}: Nộp {row['submitted']}, Duyệt {row['approved']}, "
            f"Từ chối {row['rejected']}, Chờ {row['pending']}."
            for row in teacher_rows
        )
        try:
            return await self.generate(TEAM_ANALYSIS_PROMPT.format(stats=stats or "- (chưa có dữ liệu)"))
        except httpx.HTTPError as e:
            logger.error("Team analysis generation failed: %s", e)
            return ""
