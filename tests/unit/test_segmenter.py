"""Unit tests for lyrics segmentation."""

from lyricalvision.core.segmenter import normalize_line_endings, segment_lyrics, split_stanza_texts


class TestSegmentLyrics:
    """Tests for segment_lyrics."""

    def test_two_stanzas_in_order(self):
        """A single blank line separates two stanzas."""
        stanzas = segment_lyrics("A\n\nB")

        assert [s.text for s in stanzas] == ["A", "B"]

    def test_new_stanzas_have_no_generation_state(self):
        """Fresh stanzas are idle with no image and no error."""
        stanza = segment_lyrics("Only verse")[0]

        assert stanza.is_loading is False
        assert stanza.image_url is None
        assert stanza.error is None

    def test_ids_are_unique(self):
        """Every stanza gets its own id, even for identical text."""
        stanzas = segment_lyrics("Chorus\n\nChorus\n\nChorus")

        assert len({s.id for s in stanzas}) == 3

    def test_single_newlines_stay_inside_stanza(self):
        """Lines without a blank line between them form one stanza."""
        stanzas = segment_lyrics("line one\nline two\n\nline three")

        assert [s.text for s in stanzas] == ["line one\nline two", "line three"]

    def test_crlf_matches_lf(self):
        """CRLF input and irregular blank-line runs give the LF result."""
        crlf = "Verse 1\r\nwalking\r\n\r\n\r\n  \r\nChorus\r\n \t\r\nBridge\r\n"
        lf = "Verse 1\nwalking\n\nChorus\n\nBridge"

        assert [s.text for s in segment_lyrics(crlf)] == [s.text for s in segment_lyrics(lf)]

    def test_lone_carriage_returns(self):
        """Old Mac line endings are normalised too."""
        assert split_stanza_texts("A\r\rB") == ["A", "B"]

    def test_pieces_are_trimmed(self):
        """Leading and trailing whitespace of each stanza is removed."""
        assert split_stanza_texts("\n\n   A  \n\n\n\t B\t\n\n") == ["A", "B"]

    def test_blank_input_gives_nothing(self):
        """Whitespace-only input yields no stanzas."""
        assert segment_lyrics("  \n\n \r\n ") == []
        assert segment_lyrics("") == []


class TestNormalizeLineEndings:
    """Tests for normalize_line_endings."""

    def test_mixed_endings(self):
        assert normalize_line_endings("a\r\nb\rc\nd") == "a\nb\nc\nd"
