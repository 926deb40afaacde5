import unittest

from saltbox_cli.motd.formatting import (
    PLEX_STREAM_BUCKETS,
    format_bytes,
    format_instances,
    format_speed,
    summarize_queue,
    summarize_streams,
    summarize_torrents,
    summarize_usenet,
)
from saltbox_cli.motd.models import QueueInfo, StreamInfo, TorrentInfo, UsenetInfo


class FormatBytesTests(unittest.TestCase):
    def test_units(self) -> None:
        self.assertEqual(format_bytes(0), "0 B")
        self.assertEqual(format_bytes(512), "512 B")
        self.assertEqual(format_bytes(1536), "1.5 KB")
        self.assertEqual(format_bytes(2 * 1024**3), "2.0 GB")

    def test_speed(self) -> None:
        self.assertEqual(format_speed(1024 * 1024), "1.0 MB/s")


class FormatInstancesTests(unittest.TestCase):
    def test_single_instance_has_no_label(self) -> None:
        infos = [QueueInfo(name="Sonarr", statuses=[])]

        self.assertEqual(format_instances(infos, summarize_queue), "0 items in queue")

    def test_single_instance_labelled_when_forced(self) -> None:
        infos = [QueueInfo(name="Sonarr", statuses=[])]

        self.assertEqual(
            format_instances(infos, summarize_queue, always_label=True),
            "Sonarr: 0 items in queue",
        )

    def test_multiple_instances_are_aligned(self) -> None:
        infos = [
            QueueInfo(name="Sonarr", statuses=["downloading"]),
            QueueInfo(name="Sonarr4K", statuses=[]),
        ]

        self.assertEqual(
            format_instances(infos, summarize_queue),
            "Sonarr:   1 item in queue, 1 downloading\nSonarr4K: 0 items in queue",
        )

    def test_empty(self) -> None:
        self.assertEqual(format_instances([], summarize_queue), "")


class SummaryTests(unittest.TestCase):
    def test_queue_counts_statuses(self) -> None:
        info = QueueInfo(name="Radarr", statuses=["downloading", "Completed", "downloading"])

        self.assertEqual(summarize_queue(info), "3 items in queue, 1 completed, 2 downloading")

    def test_streams(self) -> None:
        self.assertEqual(summarize_streams(StreamInfo(name="Plex")), "No active streams")
        info = StreamInfo(name="Plex", active=3, direct_play=1, transcode=2)
        self.assertEqual(summarize_streams(info), "3 active streams (1 direct play, 2 transcode)")
        info = StreamInfo(name="Plex", active=1, remux=1)
        self.assertEqual(summarize_streams(info), "1 active stream (1 remux)")

    def test_plex_lists_transcodes_before_direct_streams(self) -> None:
        info = StreamInfo(name="Plex", active=3, direct_play=1, direct_stream=1, transcode=1)

        self.assertEqual(
            summarize_streams(info),
            "3 active streams (1 direct play, 1 direct stream, 1 transcode)",
        )
        self.assertEqual(
            summarize_streams(info, PLEX_STREAM_BUCKETS),
            "3 active streams (1 direct play, 1 transcode, 1 direct stream)",
        )

    def test_torrents(self) -> None:
        self.assertEqual(summarize_torrents(TorrentInfo(name="qBittorrent")), "No torrents present")
        info = TorrentInfo(
            name="qBittorrent",
            downloading=2,
            seeding=5,
            stopped=1,
            download_rate=2048,
            upload_rate=0,
        )
        self.assertEqual(
            summarize_torrents(info),
            "↓2.0 KB/s ↑0 B/s | 2 Downloading | 5 Seeding | 1 Stopped",
        )

    def test_torrent_errors_are_shown(self) -> None:
        info = TorrentInfo(name="rTorrent", seeding=1, errored=2)

        self.assertTrue(summarize_torrents(info).endswith("| 0 Downloading | 1 Seeding | 2 Error"))

    def test_usenet(self) -> None:
        self.assertEqual(summarize_usenet(UsenetInfo(name="SABnzbd")), "Queue is empty")
        info = UsenetInfo(
            name="SABnzbd",
            speed="1.2 M",
            queue_count=2,
            size_total="3.0 GB",
            size_left="1.0 GB",
        )
        self.assertEqual(
            summarize_usenet(info),
            "Downloading at 1.2 M/s, 2 items in queue (1.0 GB remaining / 3.0 GB total)",
        )
        paused = UsenetInfo(name="SABnzbd", paused=True, queue_count=1, size_total="1 GB", size_left="1 GB")
        self.assertEqual(summarize_usenet(paused), "Paused, 1 item in queue (1 GB remaining / 1 GB total)")


if __name__ == "__main__":
    unittest.main()
