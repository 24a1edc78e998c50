from __future__ import annotations

import pytest

from conftest import make_message
from weekly_playlist.links import (
    extract_spotify_urls_and_user_data,
    find_urls,
    get_ids_from_external_urls,
    strip_query_parameters,
)

USER_ID = "559136461311417979"


def _urls_for(content: str) -> list[str]:
    urls, _ = extract_spotify_urls_and_user_data([make_message("1", content)])
    return urls[USER_ID]


def test_maps_user_id_to_username() -> None:
    _, usernames = extract_spotify_urls_and_user_data([
        make_message("1", "nice https://open.spotify.com/track/1AAYbsAIgEJMbxgLgpjE9y"),
    ])

    assert usernames == {USER_ID: "fake_user"}


def test_first_username_seen_wins() -> None:
    _, usernames = extract_spotify_urls_and_user_data([
        make_message("1", "hi", username="old_name"),
        make_message("2", "hi again", username="new_name"),
    ])

    assert usernames[USER_ID] == "old_name"


def test_message_without_urls_gives_empty_list() -> None:
    assert _urls_for("some text here") == []


def test_query_parameters_are_removed() -> None:
    urls = _urls_for(
        "The mid to ending beat reminds me of an Avalanches song, that was nice "
        "https://open.spotify.com/track/1AAYbsAIgEJMbxgLgpjE9y?si=I5fzMJR_TwyrNf69NBwVkw&utm_source=copy-link"
    )

    assert urls == ["https://open.spotify.com/track/1AAYbsAIgEJMbxgLgpjE9y"]


def test_url_followed_by_newline() -> None:
    assert _urls_for("sdfsdfs https://open.spotify.com/track/3hOOeY9W4xhoqscfi9XZof\nsdfg") == [
        "https://open.spotify.com/track/3hOOeY9W4xhoqscfi9XZof"
    ]


def test_joined_malformed_url_stays_one_link() -> None:
    urls = _urls_for(
        "lorem ipsum https://open.spotify.com/album/5GZMmsnK1viNAVvxIBB98A"
        "https://open.spotify.com/album/0uMXGqXcmmcbQk0g4A0bK7 foo bar"
    )

    assert urls == [
        "https://open.spotify.com/album/5GZMmsnK1viNAVvxIBB98Ahttps:/open.spotify.com/album/0uMXGqXcmmcbQk0g4A0bK7"
    ]


def test_only_open_spotify_links_are_kept() -> None:
    urls = _urls_for(
        "totam rem aperiam https://developer.spotify.com/documentation/web-api/#spotify-uris-and-ids "
        "quasi architecto https://open.spotify.com/album/4gR3h0hcpE1iJH0v5bVv78?si=ChgZZpVrSVOaa2Zi9rcVuA voluptatem."
    )

    assert urls == ["https://open.spotify.com/album/4gR3h0hcpE1iJH0v5bVv78"]


def test_three_links_in_one_message() -> None:
    urls = _urls_for(
        "https://open.spotify.com/track/6e3lmEDl5f9MNjgZjbNVN5 and "
        "(https://open.spotify.com/album/4gR3h0hcpE1iJH0v5bVv78), also "
        "<https://open.spotify.com/track/0DadJLrbX02CNql5TtNhBB>"
    )

    assert urls == [
        "https://open.spotify.com/track/6e3lmEDl5f9MNjgZjbNVN5",
        "https://open.spotify.com/album/4gR3h0hcpE1iJH0v5bVv78",
        "https://open.spotify.com/track/0DadJLrbX02CNql5TtNhBB",
    ]


def test_repeated_links_are_kept_per_occurrence() -> None:
    link = "https://open.spotify.com/track/6e3lmEDl5f9MNjgZjbNVN5"
    urls, _ = extract_spotify_urls_and_user_data([
        make_message("1", f"{link} {link}"),
        make_message("2", link),
    ])

    assert urls[USER_ID] == [link, link, link]


def test_bot_messages_are_skipped() -> None:
    urls, usernames = extract_spotify_urls_and_user_data([
        make_message("1", "https://open.spotify.com/track/6e3lmEDl5f9MNjgZjbNVN5", author_id="42", bot=True),
    ])

    assert urls == {}
    assert usernames == {}


def test_links_grouped_per_user() -> None:
    urls, usernames = extract_spotify_urls_and_user_data([
        make_message("1", "https://open.spotify.com/track/6e3lmEDl5f9MNjgZjbNVN5", author_id="1", username="a"),
        make_message("2", "https://open.spotify.com/track/5anCkDvJ17aznvK5TED5uo", author_id="2", username="b"),
        make_message("3", "https://open.spotify.com/track/0DadJLrbX02CNql5TtNhBB", author_id="1", username="a"),
    ])

    assert urls == {
        "1": [
            "https://open.spotify.com/track/6e3lmEDl5f9MNjgZjbNVN5",
            "https://open.spotify.com/track/0DadJLrbX02CNql5TtNhBB",
        ],
        "2": ["https://open.spotify.com/track/5anCkDvJ17aznvK5TED5uo"],
    }
    assert usernames == {"1": "a", "2": "b"}


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("https://open.spotify.com/track/abc?si=1", "https://open.spotify.com/track/abc"),
        ("https://OPEN.spotify.com/track/abc/#top", "https://open.spotify.com/track/abc"),
        ("open.spotify.com/playlist/xyz?si=2", "https://open.spotify.com/playlist/xyz"),
    ],
)
def test_strip_query_parameters(raw: str, expected: str) -> None:
    assert strip_query_parameters(raw) == expected


def test_found_urls_never_contain_query_strings() -> None:
    text = "a https://example.com/x?y=1 b https://open.spotify.com/track/abc?si=x&t=2 c http://foo.bar/?"

    assert all("?" not in url for url in find_urls(text))


def test_ids_grouped_by_type() -> None:
    ids = get_ids_from_external_urls([
        "https://open.spotify.com/track/6e3lmEDl5f9MNjgZjbNVN5",
        "https://open.spotify.com/intl-de/album/4gR3h0hcpE1iJH0v5bVv78",
        "https://open.spotify.com/playlist/68wXeUJO6sv1aXVm5uOFCk",
        "https://open.spotify.com/artist/0OdUWJ0sBjDrqHygGUXeCF",
        "https://open.spotify.com/track",
        "https://open.spotify.com/album/5GZMmsnK1viNAVvxIBB98Ahttps:/open.spotify.com/album/0uMXGqXcmmcbQk0g4A0bK7",
    ])

    assert ids.tracks == ["6e3lmEDl5f9MNjgZjbNVN5"]
    assert ids.albums == ["4gR3h0hcpE1iJH0v5bVv78"]
    assert ids.playlists == ["68wXeUJO6sv1aXVm5uOFCk"]


def test_bracketed_junk_url_does_not_hide_spotify_links() -> None:
    urls = _urls_for("see http://[oops and https://open.spotify.com/track/abc?si=1")

    assert urls == ["https://open.spotify.com/track/abc"]


def test_unparseable_urls_are_skipped() -> None:
    assert find_urls("http://[oops http://]x") == []
    assert get_ids_from_external_urls(["https://[broken/track/abc"]).tracks == []
