"""Tests for domain exceptions."""

import pytest

from pixum.domain.exceptions import (
    ArtworkUnavailableError,
    DomainException,
    InternalError,
    InvalidUrlError,
    ServerUnreachableError,
    TooHighQueryError,
    WrongArtworkUrlError,
    ZeroQueryError,
)


class TestQueryErrors:
    """Index range errors carry user-facing messages."""

    def test_zero_query_message(self) -> None:
        assert ZeroQueryError().message == (
            "The index of the requested image must be at least 1."
        )

    def test_too_high_query_singular(self) -> None:
        exc = TooHighQueryError(1)

        assert exc.max_index == 1
        assert exc.message == (
            "The index of the requested image is too high; "
            "there is 1 image in this collection."
        )

    @pytest.mark.parametrize("max_index", [0, 2, 17])
    def test_too_high_query_plural(self, max_index: int) -> None:
        exc = TooHighQueryError(max_index)

        assert exc.message == (
            "The index of the requested image is too high; "
            f"there are {max_index} images in this collection."
        )


class TestArtworkUnavailable:
    def test_upstream_message_kept(self) -> None:
        exc = ArtworkUnavailableError(upstream_message="deleted")
        assert exc.upstream_message == "deleted"

    def test_empty_upstream_message_normalized_to_none(self) -> None:
        assert ArtworkUnavailableError(upstream_message="").upstream_message is None

    def test_wrong_url_is_an_unavailable_artwork(self) -> None:
        """Callers that only care about "unavailable" also catch stale URLs."""
        exc = WrongArtworkUrlError("https://i.pximg.net/img-original/1_p0.png")

        assert isinstance(exc, ArtworkUnavailableError)
        assert exc.url == "https://i.pximg.net/img-original/1_p0.png"
        assert exc.upstream_message is None


@pytest.mark.parametrize(
    "exc",
    [
        InvalidUrlError(),
        ArtworkUnavailableError(),
        ServerUnreachableError("boom"),
        ZeroQueryError(),
        TooHighQueryError(3),
        InternalError(),
    ],
)
def test_all_errors_are_domain_exceptions(exc: DomainException) -> None:
    assert isinstance(exc, DomainException)
    assert str(exc) == exc.message
