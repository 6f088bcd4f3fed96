"""
Remote series artwork from TheTVDB.

One image query is issued per category (poster, series banner, fanart). The
queries run concurrently and fail independently: a category that errors is
logged and reported as a failed outcome, and the remaining categories are
still merged and ranked.
"""
import asyncio
from typing import Iterable

from aiohttp import ClientError
from pydantic import ValidationError

from app.internal.env_settings import Settings
from app.internal.metadata.languages import LanguageResolver
from app.internal.metadata.tvdb import ImageSource, TvdbError, TvdbImage
from app.internal.models import (
    DEFAULT_IMAGE_CATEGORIES,
    AggregationResult,
    CategoryOutcome,
    ImageCandidate,
    ImageCategory,
    ImageSubject,
    ImageType,
)
from app.internal.ranking.image_ranking import rank_images
from app.util.exceptions import handle_external_api_error, handle_validation_error
from app.util.log import logger

PROVIDER_NAME = "TheTVDB"
TVDB_PROVIDER_KEY = "Tvdb"

_IMAGE_TYPES: dict[str, ImageType] = {
    "poster": ImageType.primary,
    "series": ImageType.banner,
    "fanart": ImageType.backdrop,
}


def get_tvdb_id(provider_ids: dict[str, str]) -> int | None:
    for key, value in provider_ids.items():
        if key.lower() != TVDB_PROVIDER_KEY.lower():
            continue
        try:
            return int(value)
        except (TypeError, ValueError):
            return None
    return None


def is_valid_series(provider_ids: dict[str, str]) -> bool:
    return get_tvdb_id(provider_ids) is not None


def parse_resolution(resolution: str | None) -> tuple[int, int] | None:
    """Parse a "WxH" token; anything else yields None."""
    if not resolution:
        return None
    parts = [p.strip() for p in resolution.lower().split("x")]
    # isdigit() also accepts superscripts and other digits int() rejects
    if len(parts) != 2 or not all(p.isascii() and p.isdecimal() for p in parts):
        return None
    return int(parts[0]), int(parts[1])


def map_image_type(key_type: str | None) -> ImageType | None:
    return _IMAGE_TYPES.get((key_type or "").lower())


class SeriesImageProvider:
    name: str = PROVIDER_NAME
    order: int = 0

    _client: ImageSource
    _settings: Settings

    def __init__(self, client: ImageSource, settings: Settings | None = None):
        self._client = client
        self._settings = settings or Settings()

    def supports(self, subject: ImageSubject) -> bool:
        return subject.kind.lower() == "series"

    def supported_images(self) -> list[ImageType]:
        return [ImageType.primary, ImageType.banner, ImageType.backdrop]

    def resolve_preferred_language(
        self, subject: ImageSubject, preferred_language: str | None = None
    ) -> str:
        return (
            preferred_language
            or subject.preferred_metadata_language
            or self._settings.app.default_metadata_language
        )

    def to_candidate(self, image: TvdbImage, languages: LanguageResolver) -> ImageCandidate:
        banner_url = self._settings.tvdb.banner_url
        dimensions = parse_resolution(image.resolution)
        if image.resolution and dimensions is None:
            logger.debug(
                "Ignoring malformed image resolution",
                resolution=image.resolution,
                file_name=image.fileName,
            )
        width, height = dimensions or (None, None)

        return ImageCandidate(
            url=banner_url + image.fileName,
            thumbnail_url=banner_url + image.thumbnail if image.thumbnail else None,
            type=map_image_type(image.keyType),
            language=languages.resolve(image.languageId),
            width=width,
            height=height,
            community_rating=image.ratingsInfo.average,
            vote_count=image.ratingsInfo.count,
            provider_name=self.name,
            rating_type="score",
        )

    async def _query_category(
        self,
        series_id: int,
        category: ImageCategory,
        language: str,
        languages: LanguageResolver,
        semaphore: asyncio.Semaphore,
    ) -> CategoryOutcome:
        async with semaphore:
            try:
                images = await self._client.get_series_images(series_id, category, language)
            except ValidationError as e:
                handle_validation_error(
                    e,
                    "TheTVDB images response",
                    series_id=series_id,
                    category=category.value,
                )
                return CategoryOutcome(category=category, status="failed", error=str(e))
            except (TvdbError, ClientError, asyncio.TimeoutError) as e:
                handle_external_api_error(
                    e,
                    PROVIDER_NAME,
                    "fetch images",
                    series_id=series_id,
                    category=category.value,
                )
                return CategoryOutcome(
                    category=category,
                    status="failed",
                    error=str(e) or type(e).__name__,
                )

        candidates = [self.to_candidate(image, languages) for image in images]
        logger.debug(
            "Fetched series images",
            series_id=series_id,
            category=category.value,
            count=len(candidates),
        )
        return CategoryOutcome(category=category, status="ok", candidates=candidates)

    async def _load_languages(
        self, waiter: asyncio.Task[object] | None
    ) -> LanguageResolver | None:
        """Load the language table, or None if `waiter` finishes first."""
        if waiter is None:
            return await LanguageResolver.load(self._client)

        load = asyncio.create_task(LanguageResolver.load(self._client))
        try:
            await asyncio.wait({load, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if not load.done():
                load.cancel()
                await asyncio.gather(load, return_exceptions=True)
        if load.cancelled():
            return None
        return load.result()

    async def aggregate(
        self,
        subject: ImageSubject,
        categories: Iterable[ImageCategory] = DEFAULT_IMAGE_CATEGORIES,
        preferred_language: str | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> AggregationResult:
        """
        Query every category and merge the outcomes, unranked.

        Outcomes are reported in category order regardless of which query
        finished first. If `cancel_event` is set while queries are still
        running, those queries are cancelled and reported as cancelled; the
        categories that already finished are kept. Setting it while the
        language table is still loading reports every category as cancelled.
        """
        categories = list(categories)
        series_id = get_tvdb_id(subject.provider_ids)
        if series_id is None:
            logger.debug("No usable TheTVDB id, skipping images", subject=subject.name)
            return AggregationResult()
        if not categories:
            return AggregationResult()

        language = self.resolve_preferred_language(subject, preferred_language)
        waiter = asyncio.create_task(cancel_event.wait()) if cancel_event else None
        tasks: list[tuple[ImageCategory, asyncio.Task[CategoryOutcome]]] = []
        pending: set[asyncio.Task[CategoryOutcome]] = set()

        try:
            languages = await self._load_languages(waiter)
            if languages is None:
                logger.info("Image aggregation cancelled", series_id=series_id)
                return AggregationResult(
                    outcomes=[
                        CategoryOutcome(category=category, status="cancelled")
                        for category in categories
                    ]
                )

            semaphore = asyncio.Semaphore(
                max(1, self._settings.tvdb.max_concurrent_image_requests)
            )
            tasks = [
                (
                    category,
                    asyncio.create_task(
                        self._query_category(
                            series_id, category, language, languages, semaphore
                        )
                    ),
                )
                for category in categories
            ]
            pending.update(task for _, task in tasks)

            while pending:
                wait_for: set[asyncio.Task[object]] = set(pending)
                if waiter is not None:
                    wait_for.add(waiter)
                done, _ = await asyncio.wait(wait_for, return_when=asyncio.FIRST_COMPLETED)
                pending.difference_update(done)
                if waiter is not None and waiter in done:
                    if pending:
                        logger.info(
                            "Image aggregation cancelled",
                            series_id=series_id,
                            pending=len(pending),
                        )
                    break
        finally:
            leftovers: list[asyncio.Task[object]] = list(pending)
            if waiter is not None:
                leftovers.append(waiter)
            for task in leftovers:
                task.cancel()
            await asyncio.gather(*leftovers, return_exceptions=True)

        outcomes = [
            CategoryOutcome(category=category, status="cancelled")
            if task.cancelled()
            else task.result()
            for category, task in tasks
        ]
        result = AggregationResult(outcomes=outcomes)

        if result.failed_categories:
            logger.warning(
                "Some image categories failed",
                series_id=series_id,
                failed=[c.value for c in result.failed_categories],
            )
        return result

    async def get_images(
        self,
        subject: ImageSubject,
        categories: Iterable[ImageCategory] = DEFAULT_IMAGE_CATEGORIES,
        preferred_language: str | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[ImageCandidate]:
        """Merged candidates of all categories, best first for the preferred language."""
        language = self.resolve_preferred_language(subject, preferred_language)
        result = await self.aggregate(subject, categories, language, cancel_event)
        return rank_images(result.candidates, language)
