"""
Pytest configuration and fixtures for the metadata engine test suite.
"""
import asyncio
from typing import AsyncGenerator, Generator

import pytest
from aiohttp import ClientSession
from aioresponses import aioresponses

from app.internal.env_settings import ApplicationSettings, Settings, TvdbSettings
from app.internal.metadata.tvdb import TvdbImage, TvdbLanguage
from app.internal.models import ImageCategory, ImageSubject, LibraryItem, PersonInfo

TVDB_BASE_URL = "https://api.tvdb.test"
BANNER_URL = "https://artwork.tvdb.test/banners/"


class FakeImageSource:
    """In-memory upstream client: per-category images, errors or gates."""

    def __init__(
        self,
        images: dict[ImageCategory, list[TvdbImage]] | None = None,
        errors: dict[ImageCategory, BaseException] | None = None,
        languages: list[TvdbLanguage] | None = None,
        languages_error: BaseException | None = None,
    ):
        self.images = images or {}
        self.errors = errors or {}
        self.languages = languages or []
        self.languages_error = languages_error
        self.gates: dict[ImageCategory, asyncio.Event] = {}
        self.languages_gate: asyncio.Event | None = None
        self.calls: list[tuple[int, ImageCategory, str | None]] = []
        self.language_calls = 0

    async def get_series_images(
        self, series_id: int, key_type: ImageCategory, language: str | None = None
    ) -> list[TvdbImage]:
        self.calls.append((series_id, key_type, language))
        gate = self.gates.get(key_type)
        if gate is not None:
            await gate.wait()
        if key_type in self.errors:
            raise self.errors[key_type]
        return self.images.get(key_type, [])

    async def get_languages(self) -> list[TvdbLanguage]:
        self.language_calls += 1
        if self.languages_gate is not None:
            await self.languages_gate.wait()
        if self.languages_error is not None:
            raise self.languages_error
        return self.languages


# Settings fixtures
@pytest.fixture
def settings() -> Settings:
    """Settings pointing at a fake TheTVDB host."""
    return Settings(
        app=ApplicationSettings(default_metadata_language="en"),
        tvdb=TvdbSettings(
            base_url=TVDB_BASE_URL,
            banner_url=BANNER_URL,
            api_key="test-api-key",
            language_cache_ttl=3600,
        ),
    )


# Async HTTP mocking fixtures
@pytest.fixture
def aioresponses_mocker() -> Generator[aioresponses, None, None]:
    """Provide aioresponses context manager for manual HTTP mocking."""
    with aioresponses() as mocked:
        yield mocked


@pytest.fixture
async def client_session(aioresponses_mocker) -> AsyncGenerator[ClientSession, None]:
    """Provide a real ClientSession whose requests are answered by aioresponses."""
    async with ClientSession() as session:
        yield session


# Sample data fixtures
@pytest.fixture
def sample_languages() -> list[TvdbLanguage]:
    return [
        TvdbLanguage(id=7, abbreviation="en", name="English", englishName="English"),
        TvdbLanguage(id=14, abbreviation="de", name="Deutsch", englishName="German"),
        TvdbLanguage(id=17, abbreviation="fr", name="Français", englishName="French"),
    ]


@pytest.fixture
def sample_images() -> dict[ImageCategory, list[TvdbImage]]:
    """Raw upstream images keyed by the category they were queried with."""
    return {
        ImageCategory.poster: [
            TvdbImage.model_validate({
                "id": 1,
                "keyType": "poster",
                "fileName": "posters/81189-1.jpg",
                "thumbnail": "_cache/posters/81189-1.jpg",
                "resolution": "680x1000",
                "languageId": 7,
                "ratingsInfo": {"average": 7.5, "count": 12},
            }),
            TvdbImage.model_validate({
                "id": 2,
                "keyType": "poster",
                "fileName": "posters/81189-2.jpg",
                "thumbnail": "_cache/posters/81189-2.jpg",
                "resolution": "680x1000",
                "languageId": 14,
                "ratingsInfo": {"average": 6.0, "count": 3},
            }),
        ],
        ImageCategory.series: [
            TvdbImage.model_validate({
                "id": 3,
                "keyType": "series",
                "fileName": "graphical/81189-g.jpg",
                "thumbnail": None,
                "resolution": "",
                "languageId": 7,
                "ratingsInfo": {"average": 8.1, "count": 40},
            }),
        ],
        ImageCategory.fanart: [
            TvdbImage.model_validate({
                "id": 4,
                "keyType": "fanart",
                "fileName": "fanart/original/81189-1.jpg",
                "thumbnail": "_cache/fanart/original/81189-1.jpg",
                "resolution": "1920x1080",
                "languageId": None,
                "ratingsInfo": {"average": 9.0, "count": 100},
            }),
        ],
    }


@pytest.fixture
def fake_source(sample_images, sample_languages) -> FakeImageSource:
    return FakeImageSource(images=sample_images, languages=sample_languages)


@pytest.fixture
def breaking_bad() -> ImageSubject:
    return ImageSubject(
        name="Breaking Bad",
        kind="series",
        provider_ids={"Tvdb": "81189", "Imdb": "tt0903747"},
    )


@pytest.fixture
def sample_library_items() -> list[LibraryItem]:
    """Library items with overlapping casts and mixed casing."""
    return [
        LibraryItem(
            id="1",
            name="Cast Away",
            people=(
                PersonInfo(name="Tom Hanks", type="Actor", role="Chuck Noland"),
                PersonInfo(name="Robert Zemeckis", type="Director"),
            ),
        ),
        LibraryItem(
            id="2",
            name="That Thing You Do!",
            people=(
                PersonInfo(name="tom hanks", type="Director"),
                PersonInfo(name="Tom Hanks", type="Actor", role="Mr. White"),
                PersonInfo(name="Liv Tyler", type="Actor"),
            ),
        ),
        LibraryItem(
            id="3",
            name="Contact",
            people=(
                PersonInfo(name="Robert Zemeckis", type="Director"),
                PersonInfo(name="Jodie Foster", type="Actor"),
                PersonInfo(name="Carl Sagan", type=None),
            ),
        ),
        LibraryItem(id="4", name="Home Video", people=None),
        LibraryItem(id="5", name="Screensaver", people=()),
    ]
