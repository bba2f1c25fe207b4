from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from fixtures import JAN_16_2010, write_recording, write_sidecar
from modd.parse import load_modd
from modd.types import ModdRecord
from videos.fingerprint import FingerprintError, fingerprint_file, video_from_modd, videos_from_modds
from videos.resolve import candidate_paths, classify_container, resolve_video_path
from videos.types import AudioCodec, Container, VideoCodec


def test_uppercase_mpg_sibling_is_resolved(tmp_path: Path) -> None:
    modd_path, video_path = write_recording(tmp_path, "20100116110730", payload=b"\x00\x00\x01\xba" * 64)

    resolved = resolve_video_path(modd_path)

    assert resolved.samefile(video_path)
    assert classify_container(resolved) is Container.MPEG

    video = video_from_modd(load_modd(modd_path))
    assert video.container is Container.MPEG
    assert video.video_codec is VideoCodec.MPEG2
    assert video.audio_codec is AudioCodec.UNKNOWN
    assert video.creation_time.unix_seconds == JAN_16_2010
    assert video.duration == 125.5


def test_candidates_try_lowercase_before_uppercase() -> None:
    candidates = list(candidate_paths(Path("clip.modd")))
    assert candidates[:4] == [Path("clip.mpg"), Path("clip.MPG"), Path("clip.mpeg"), Path("clip.MPEG")]
    assert candidates[-1] == Path("clip.AVI")


def test_container_table() -> None:
    assert classify_container(Path("a.mkv")) is Container.MKV
    assert classify_container(Path("a.m4v")) is Container.MP4
    assert classify_container(Path("a.txt")) is Container.UNKNOWN
    assert Container.MKV.value == "Matroska"


def test_fingerprint_matches_sha256_of_small_file(tmp_path: Path) -> None:
    payload = b"camcorder" * 100
    target = tmp_path / "clip.mpg"
    target.write_bytes(payload)

    assert fingerprint_file(target) == hashlib.sha256(payload).digest()
    assert fingerprint_file(target) == fingerprint_file(target)


def test_files_sharing_a_prefix_share_a_fingerprint(tmp_path: Path) -> None:
    prefix = bytes(range(256)) * 8
    first = tmp_path / "a.mpg"
    second = tmp_path / "b.mpg"
    first.write_bytes(prefix + b"tail-one")
    second.write_bytes(prefix + b"tail-two")

    assert fingerprint_file(first, read_size=len(prefix)) == fingerprint_file(second, read_size=len(prefix))
    assert fingerprint_file(first, read_size=len(prefix) + 8) != fingerprint_file(second, read_size=len(prefix) + 8)


def test_small_chunks_do_not_change_the_digest(tmp_path: Path) -> None:
    target = tmp_path / "clip.mp4"
    target.write_bytes(b"x" * 5000)
    assert fingerprint_file(target, read_size=4000, chunk=7) == hashlib.sha256(b"x" * 4000).digest()


def test_missing_video_yields_empty_hash(tmp_path: Path) -> None:
    modd_path = write_sidecar(tmp_path / "lonely.modd")
    record = load_modd(modd_path)

    video = video_from_modd(record)

    assert video.hash == b""
    assert not video.fingerprinted
    assert video.location.name == "lonely.AVI"
    assert video.modd is record
    with pytest.raises(FingerprintError):
        fingerprint_file(video.location)


def test_one_missing_video_does_not_stop_the_batch(tmp_path: Path) -> None:
    ok_path, _ = write_recording(tmp_path, "ok", payload=b"data", check_code="1")
    missing = ModdRecord(name="gone.modd", location=tmp_path / "gone.modd", check_code=2)

    videos = list(videos_from_modds([missing, load_modd(ok_path)]))

    assert [video.fingerprinted for video in videos] == [False, True]
    assert videos[1].modd_check_code == 1
