import unittest
from unittest.mock import MagicMock

from prompt_toolkit.completion import CompleteEvent
from prompt_toolkit.document import Document

from evalshell.session.autocomplete import ReplCompleter, complete


class TestAutocomplete(unittest.TestCase):
    def test_prefix_matches(self):
        self.assertEqual(complete("new D", ["new Date()", "new Dictionary()", "object"]), ["new Date()", "new Dictionary()"])

    def test_no_match_offers_everything(self):
        words = ["object", ":quit"]
        self.assertEqual(complete("zzz", words), words)

    def test_completer_offers_keywords_and_commands(self):
        events = MagicMock()
        completer = ReplCompleter(["object", "override"], [":quit", ":q"], events=events)
        completions = list(completer.get_completions(Document(":q"), CompleteEvent()))
        self.assertEqual([c.text for c in completions], [":quit", ":q"])
        self.assertEqual(completions[0].start_position, -2)
        events.log.assert_called_once_with(event_type="autocomplete", payload={"input": ":q", "ok": True})

        texts = [c.text for c in completer.get_completions(Document("ov"), CompleteEvent())]
        self.assertEqual(texts, ["override"])


if __name__ == "__main__":
    unittest.main()
