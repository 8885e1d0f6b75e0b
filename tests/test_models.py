import unittest
from pydantic import ValidationError
from playsync.models import ItemsPage, MediaItem, ServerEndpoint


class TestServerEndpoint(unittest.TestCase):
    def test_adds_https_scheme(self):
        ep = ServerEndpoint(host="jellyfin.example.net/", user_id="u", token="t")
        self.assertEqual(ep.host, "https://jellyfin.example.net")

    def test_keeps_http_scheme_and_trims_slashes(self):
        ep = ServerEndpoint(host="http://10.0.0.5:8096//", user_id="u", token="t")
        self.assertEqual(ep.host, "http://10.0.0.5:8096")

    def test_rejects_empty_host(self):
        with self.assertRaises(ValidationError):
            ServerEndpoint(host="  ", user_id="u", token="t")

    def test_rejects_host_without_server_name(self):
        for host in ("https://", "http:///", "/", "//"):
            with self.subTest(host=host):
                with self.assertRaises(ValidationError):
                    ServerEndpoint(host=host, user_id="u", token="t")

    def test_rejects_empty_token(self):
        with self.assertRaises(ValidationError):
            ServerEndpoint(host="a.example", user_id="u", token="")

    def test_is_immutable(self):
        ep = ServerEndpoint(host="a.example", user_id="u", token="t")
        with self.assertRaises(ValidationError):
            ep.host = "b.example"


class TestPlayedPredicate(unittest.TestCase):
    def decode(self, user_data):
        return MediaItem.model_validate({"Id": "1", "Name": "Alpha", "RunTimeTicks": 10, "UserData": user_data})

    def test_played_flag(self):
        self.assertTrue(self.decode({"Played": True, "PlayCount": 0}).is_played)

    def test_play_count_alone(self):
        self.assertTrue(self.decode({"Played": False, "PlayCount": 3}).is_played)

    def test_neither(self):
        self.assertFalse(self.decode({"Played": False, "PlayCount": 0, "PlaybackPositionTicks": 500}).is_played)

    def test_missing_user_data(self):
        self.assertFalse(self.decode(None).is_played)


class TestWireDecoding(unittest.TestCase):
    def test_decodes_envelope(self):
        page = ItemsPage.model_validate({
            "Items": [{
                "Name": "Alpha",
                "Id": "abc",
                "RunTimeTicks": 72000000000,
                "Type": "Movie",
                "UserData": {"PlaybackPositionTicks": 12, "PlayCount": 1, "Played": True},
            }],
            "TotalRecordCount": 1,
            "StartIndex": 0,
        })
        it = page.items[0]
        self.assertEqual((it.id, it.name, it.runtime_ticks), ("abc", "Alpha", 72000000000))
        self.assertEqual(it.play_state.position_ticks, 12)
        self.assertEqual(page.total_record_count, 1)

    def test_null_runtime_is_unknown(self):
        it = MediaItem.model_validate({"Id": "abc", "Name": None, "RunTimeTicks": None})
        self.assertEqual(it.runtime_ticks, 0)
        self.assertEqual(it.name, "")
        self.assertIsNone(it.play_state)

    def test_missing_id_is_invalid(self):
        with self.assertRaises(ValidationError):
            MediaItem.model_validate({"Name": "Alpha"})

    def test_bad_item_is_skipped_but_counted(self):
        page = ItemsPage.model_validate({
            "Items": [{"Name": "No id"}, {"Id": "ok", "Name": "Alpha"}],
            "TotalRecordCount": 2,
            "StartIndex": 0,
        })
        self.assertEqual([i.id for i in page.items], ["ok"])
        self.assertEqual(page.received_count, 2)


if __name__ == '__main__':
    unittest.main()
