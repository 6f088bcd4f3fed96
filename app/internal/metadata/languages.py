import asyncio
from typing import Iterable

from aiohttp import ClientError
from pydantic import ValidationError

from app.internal.metadata.tvdb import ImageSource, TvdbError, TvdbLanguage
from app.util.exceptions import handle_external_api_error, handle_validation_error


class LanguageResolver:
    """Maps a provider's numeric language id to its abbreviation ("en", "de")."""

    _abbreviations: dict[int, str]

    def __init__(self, languages: Iterable[TvdbLanguage] = ()):
        self._abbreviations = {}
        for language in languages:
            # First entry wins on duplicate ids
            self._abbreviations.setdefault(language.id, language.abbreviation)

    def __len__(self) -> int:
        return len(self._abbreviations)

    def resolve(self, language_id: int | None) -> str | None:
        if language_id is None:
            return None
        return self._abbreviations.get(language_id) or None

    @classmethod
    async def load(cls, client: ImageSource) -> "LanguageResolver":
        """
        Build a resolver from the client's language table.

        Best-effort: if the table cannot be fetched, the failure is logged and
        an empty resolver is returned, so every id resolves to no language.
        """
        try:
            return cls(await client.get_languages())
        except ValidationError as e:
            handle_validation_error(e, "TheTVDB languages response")
        except (TvdbError, ClientError, asyncio.TimeoutError) as e:
            handle_external_api_error(e, "TheTVDB", "fetch languages")
        return cls()
