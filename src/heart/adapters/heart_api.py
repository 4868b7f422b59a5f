import httpx
from pydantic import BaseModel, Field, StrictInt, ValidationError

from src.config import GameConfig
from src.heart.domain.errors import MalformedResponse, SourceUnavailable
from src.heart.domain.models import Puzzle
from src.heart.domain.ports import IPuzzleSource
from src.shared.telemetry import Telemetry, measure_time


class HeartApiPayload(BaseModel):
    """Wire format: {"question": "<image url>", "solution": <int>}"""

    question: str = Field(min_length=1)
    solution: StrictInt

    def to_puzzle(self) -> Puzzle:
        return Puzzle(image_reference=self.question, solution=self.solution)


class HeartApiPuzzleSource(IPuzzleSource):
    """
    The only place that knows the Heart API URL and response shape.
    Every fetch is an independent request with its own client.
    """

    def __init__(
        self,
        url: str = GameConfig.HEART_API_URL,
        timeout: float = GameConfig.FETCH_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._transport = transport
        self.telemetry = Telemetry("HeartApiPuzzleSource")

    @measure_time("heart_api_fetch")
    async def fetch(self) -> Puzzle:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.get(self.url)
        except httpx.HTTPError as e:
            raise SourceUnavailable(f"Heart API request failed: {e}") from e

        if not response.is_success:
            raise SourceUnavailable(
                f"Heart API returned status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = HeartApiPayload.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            raise MalformedResponse(f"Unexpected Heart API payload: {e}") from e

        self.telemetry.log_info("Puzzle fetched", image=payload.question)
        return payload.to_puzzle()
