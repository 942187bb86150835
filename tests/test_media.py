from hudmon.media import (
    Metadata,
    MetadataStore,
    assign_metadata_value,
    format_signal,
    parse_song_data,
)


def test_playback_status_playing():
    meta = Metadata()
    assign_metadata_value(meta, "PlaybackStatus", "Playing")
    assert meta.playing is True
    assert meta.got_playback_data is True
    assert meta.got_song_data is False


def test_playback_status_paused():
    meta = Metadata(playing=True)
    assign_metadata_value(meta, "PlaybackStatus", "Paused")
    assert meta.playing is False


def test_title_sets_valid():
    meta = Metadata()
    assign_metadata_value(meta, "xesam:title", "Song")
    assert meta.title == "Song"
    assert meta.valid and meta.got_song_data


def test_art_url_not_valid():
    meta = Metadata()
    assign_metadata_value(meta, "mpris:artUrl", "file:///tmp/a.png")
    assert meta.art_url == "file:///tmp/a.png"
    assert meta.got_song_data is True
    assert meta.valid is False


def test_url_only_marks_song_data():
    meta = Metadata()
    assign_metadata_value(meta, "xesam:url", "file:///x")
    assert meta == Metadata(got_song_data=True)


def test_unknown_key_ignored():
    meta = Metadata()
    assign_metadata_value(meta, "xesam:genre", "Rock")
    assert meta == Metadata()


def test_format_signal():
    assert (
        format_signal("org.freedesktop.DBus.Properties", "PropertiesChanged")
        == "type='signal',interface='org.freedesktop.DBus.Properties',member='PropertiesChanged'"
    )


def test_parse_song_data_joins_lists():
    meta = Metadata()
    parse_song_data(
        [("xesam:artist", ["A", "B"]), ("xesam:album", "Alb"), ("xesam:title", "T")], meta
    )
    assert meta.artists == "A, B"
    assert meta.album == "Alb"
    assert meta.title == "T"


def test_parse_song_data_non_primitive_empty():
    meta = Metadata(album="old")
    parse_song_data([("xesam:album", {"nested": 1})], meta)
    assert meta.album == ""


def test_store_new_player_and_no_player():
    store = MetadataStore()
    store.ticker["pos"] = 3
    store.on_new_player(Metadata(title="T", playing=True))
    assert store.meta.title == "T"
    assert store.ticker == {}
    store.ticker["pos"] = 3
    store.on_no_player()
    assert store.meta == Metadata()
    assert store.ticker == {}


def test_store_update_same_song_keeps_ticker():
    store = MetadataStore()
    store.on_new_player(Metadata(title="T", artists="A", album="B"))
    store.ticker["pos"] = 7
    update = Metadata(title="T", artists="A", album="B", got_song_data=True)
    store.on_player_update(update)
    assert store.ticker == {"pos": 7}
    assert store.meta.playing is True


def test_store_update_new_song_resets_ticker():
    store = MetadataStore()
    store.on_new_player(Metadata(title="T"))
    store.ticker["pos"] = 7
    store.on_player_update(Metadata(title="U", got_song_data=True))
    assert store.ticker == {}
    assert store.meta.title == "U"


def test_store_playback_update_only():
    store = MetadataStore()
    store.on_new_player(Metadata(title="T", playing=True))
    store.on_player_update(Metadata(playing=False, got_playback_data=True))
    assert store.meta.title == "T"
    assert store.meta.playing is False
    assert store.snapshot().playing is False


def test_store_copies_input():
    store = MetadataStore()
    meta = Metadata(title="T")
    store.on_new_player(meta)
    meta.title = "changed"
    assert store.meta.title == "T"