"""
Location description lookup with generate-on-miss.
"""
import time
from typing import Optional, Protocol
from urllib.parse import quote

from hinyari.exceptions import GenerationError
from hinyari.models.description import CacheRecord, LocationInfo
from hinyari.services.description_cache import DescriptionCache, derive_cache_key, normalize_region
from hinyari.utils.logger import get_logger


GENERATED_VIA = "Google Gemini AIで生成"

PROMPT_TEMPLATE = """以下の日本の地点について、魅力的な紹介文を書いてください。**紹介文のみ出力すること。**：

地点: {city}
地域: {region}

簡潔な紹介文（200文字以内）

回答は日本語で、自然で魅力的な文章にしてください。観光地として紹介するようなトーンで書いてください。避暑地としての魅力があれば含めてください。"""


class TextGenerator(Protocol):
    async def generate(self, prompt: str) -> Optional[str]:
        ...


def build_prompt(city: str, region: Optional[str]) -> str:
    return PROMPT_TEMPLATE.format(city=city, region=region or "不明")


def placeholder_description(city: str, region: Optional[str]) -> str:
    """Sentence shown while no description is available."""
    if region:
        return f"{city}（{region}）の詳細情報を取得中です..."
    return f"{city}の詳細情報を取得中です..."


def search_url(city: str, region: Optional[str]) -> str:
    query = " ".join(part for part in (city, region, "日本") if part)
    return f"https://www.google.com/search?q={quote(query)}"


class EnrichmentOrchestrator:
    """
    Returns a description for a location, generating and caching it on a miss.

    Never raises: without a cached or generated description the caller gets a
    placeholder sentence.
    """

    def __init__(self, cache: DescriptionCache, generator: Optional[TextGenerator] = None, logger=None):
        """
        Initialize orchestrator.

        Args:
            cache: Description cache
            generator: Text generator, None when generation is not configured
            logger: Logger instance
        """
        self.cache = cache
        self.generator = generator
        self.logger = logger or get_logger("hinyari.enrichment")

    async def describe(self, city: str, region: Optional[str] = None) -> str:
        """
        Describe a location.

        Args:
            city: City or station name
            region: Optional region qualifier

        Returns:
            Cached or freshly generated description, else a placeholder
        """
        region = normalize_region(region)
        key = derive_cache_key(city, region)

        record = await self.cache.get(key)
        if record and record.info.extract:
            return record.info.extract

        if self.generator is not None:
            if await self._generate(city, region, key):
                # The stored record is the canonical one, not the value we wrote
                record = await self.cache.get(key)
                if record and record.info.extract:
                    return record.info.extract
                self.logger.warning(f"Generated description for {key} not readable from cache")
        else:
            self.logger.debug("Text generation not configured")

        return placeholder_description(city, region)

    async def _generate(self, city: str, region: Optional[str], key: str) -> bool:
        try:
            text = await self.generator.generate(build_prompt(city, region))
        except GenerationError as e:
            self.logger.error(f"Description generation failed ({city}): {e}")
            return False

        if not text:
            return False

        info = LocationInfo(
            title=f"{city} ({region})" if region else city,
            extract=text,
            url=search_url(city, region),
            found_via=GENERATED_VIA,
            is_generated=True,
        )
        stored = await self.cache.set(key, CacheRecord(info=info, timestamp=int(time.time() * 1000)))
        if stored:
            self.logger.info(f"✅ Description generated and cached: {key}")
        return stored
