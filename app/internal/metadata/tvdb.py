"""
TheTVDB v2 API client used as the upstream source of series artwork.
"""
from typing import Any, Protocol

from aiohttp import ClientSession, ClientTimeout
from pydantic import BaseModel, Field

from app.internal.env_settings import Settings, TvdbSettings
from app.internal.models import ImageCategory
from app.util.cache import SimpleCache
from app.util.log import logger


class TvdbError(Exception):
    """An upstream request failed (bad status, not found, unusable body)."""

    status: int | None

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class TvdbNotFound(TvdbError):
    pass


class TvdbMisconfigured(ValueError):
    pass


class TvdbRatingsInfo(BaseModel):
    average: float | None = None
    count: int | None = None


class TvdbImage(BaseModel):
    """Image descriptor as returned by /series/{id}/images/query."""
    id: int | None = None
    keyType: str = ""
    subKey: str | None = None
    fileName: str = ""
    thumbnail: str | None = None
    resolution: str | None = None
    languageId: int | None = None
    ratingsInfo: TvdbRatingsInfo = Field(default_factory=TvdbRatingsInfo)


class TvdbImagesResponse(BaseModel):
    data: list[TvdbImage] = Field(default_factory=list)


class TvdbLanguage(BaseModel):
    id: int
    abbreviation: str
    name: str = ""
    englishName: str = ""


class TvdbLanguagesResponse(BaseModel):
    data: list[TvdbLanguage] = Field(default_factory=list)


class ImageSource(Protocol):
    """What the image aggregation needs from an upstream client."""

    async def get_series_images(
        self, series_id: int, key_type: ImageCategory, language: str | None = None
    ) -> list[TvdbImage]: ...

    async def get_languages(self) -> list[TvdbLanguage]: ...


class TvdbClient:
    """Async TheTVDB client; token and language table are cached per instance."""

    _client_session: ClientSession
    _settings: TvdbSettings
    _token: str | None
    _language_cache: SimpleCache[list[TvdbLanguage], str]

    def __init__(self, client_session: ClientSession, settings: Settings | None = None):
        self._client_session = client_session
        self._settings = (settings or Settings()).tvdb
        self._token = None
        self._language_cache = SimpleCache(maxsize=1)

    @property
    def base_url(self) -> str:
        return self._settings.base_url.rstrip("/")

    def _timeout(self) -> ClientTimeout:
        return ClientTimeout(total=self._settings.request_timeout)

    async def login(self) -> str:
        if not self._settings.api_key:
            raise TvdbMisconfigured("TheTVDB api key not set")

        async with self._client_session.post(
            f"{self.base_url}/login",
            json={"apikey": self._settings.api_key},
            timeout=self._timeout(),
        ) as response:
            if not response.ok:
                raise TvdbError(
                    f"TheTVDB login returned {response.status}", status=response.status
                )
            try:
                body: dict[str, Any] = await response.json()
            except ValueError as e:
                raise TvdbError(
                    "TheTVDB login returned an unreadable body", status=response.status
                ) from e

        token = body.get("token") if isinstance(body, dict) else None
        if not token:
            raise TvdbError("TheTVDB login response did not contain a token")
        self._token = token
        logger.debug("Logged in to TheTVDB")
        return token

    async def _get(
        self,
        path: str,
        params: dict[str, str] | None = None,
        language: str | None = None,
    ) -> Any:
        retried = False
        while True:
            token = self._token or await self.login()
            headers = {
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
            }
            if language:
                headers["Accept-Language"] = language

            async with self._client_session.get(
                f"{self.base_url}{path}",
                params=params,
                headers=headers,
                timeout=self._timeout(),
            ) as response:
                if response.status == 401 and not retried:
                    # Tokens expire after 24 hours
                    logger.debug("TheTVDB token rejected, logging in again", path=path)
                    self._token = None
                    retried = True
                    continue
                if response.status == 404:
                    raise TvdbNotFound(f"TheTVDB {path} not found", status=404)
                if not response.ok:
                    raise TvdbError(
                        f"TheTVDB {path} returned {response.status}",
                        status=response.status,
                    )
                try:
                    return await response.json()
                except ValueError as e:
                    raise TvdbError(
                        f"TheTVDB {path} returned an unreadable body",
                        status=response.status,
                    ) from e

    async def get_series_images(
        self, series_id: int, key_type: ImageCategory, language: str | None = None
    ) -> list[TvdbImage]:
        data = await self._get(
            f"/series/{series_id}/images/query",
            params={"keyType": key_type.value},
            language=language,
        )
        return TvdbImagesResponse.model_validate(data).data

    async def get_languages(self) -> list[TvdbLanguage]:
        cached = self._language_cache.get(self._settings.language_cache_ttl, "languages")
        if cached is not None:
            return cached

        data = await self._get("/languages")
        languages = TvdbLanguagesResponse.model_validate(data).data
        self._language_cache.set(languages, "languages")
        logger.debug(
            "Fetched TheTVDB languages",
            count=len(languages),
            cache_hit_rate=self._language_cache.get_metrics().hit_rate(),
        )
        return languages
