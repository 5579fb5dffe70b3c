"""
Unit tests for placeholder text processing - no store access.

Run with: python -m pytest tests/test_placeholders.py -v
"""

from src.models import ActorNameMapping, Character, ResolvedEntity, SubstitutionMode
from src.services.placeholders import (
    build_character_description,
    extract_identifiers,
    extract_identifiers_from_texts,
    find_actor_names_in_text,
    has_placeholders,
    replace_names_with_placeholders,
    substitute,
)


class TestExtractIdentifiers:
    """Identifier extraction from both placeholder forms"""

    def test_double_delimited(self):
        text = "Hello $$child-1$$, meet $$char-9$$!"
        assert extract_identifiers(text) == ["child-1", "char-9"]

    def test_empty_and_none(self):
        assert extract_identifiers("") == []
        assert extract_identifiers(None) == []

    def test_no_placeholders(self):
        assert extract_identifiers("A story about $5 and $10 coins.") == []
        assert not has_placeholders("A story about $5 and $10 coins.")

    def test_legacy_form_needs_fifteen_chars(self):
        text = "Say hi to $aVeryLongCharacterIdentifier123$"
        assert extract_identifiers(text) == ["aVeryLongCharacterIdentifier123"]
        # 14 characters is not a placeholder
        assert extract_identifiers("Price $abcdefghijklmn$") == []
        assert extract_identifiers("Price $abcdefghijklmno$") == ["abcdefghijklmno"]

    def test_legacy_form_allows_underscore_and_hyphen(self):
        assert extract_identifiers("$abc_def-ghi_jklmno$") == ["abc_def-ghi_jklmno"]

    def test_double_matches_come_first(self):
        text = "$legacyIdentifier0001$ then $$modern$$"
        assert extract_identifiers(text) == ["modern", "legacyIdentifier0001"]

    def test_duplicates_removed(self):
        text = "$$a$$ and $$b$$ and $$a$$"
        assert extract_identifiers(text) == ["a", "b"]

    def test_legacy_not_taken_from_inside_double(self):
        text = "$$abcdefghijklmnopqrst$$"
        assert extract_identifiers(text) == ["abcdefghijklmnopqrst"]

    def test_legacy_run_does_not_claim_double_opening(self):
        text = "$abcdefghijklmnopqrst$$char-9$$"
        assert extract_identifiers(text) == ["char-9"]
        assert has_placeholders(text)

    def test_legacy_between_double_tokens(self):
        text = "$$a$$ $legacyIdentifier0001$ $$b$$"
        assert extract_identifiers(text) == ["a", "b", "legacyIdentifier0001"]

    def test_inner_run_contains_no_dollar(self):
        assert extract_identifiers("$$a$b$$") == []

    def test_display_name_token(self):
        assert extract_identifiers("Once upon a time $$Nutsy$$ ran") == ["Nutsy"]

    def test_union_across_texts(self):
        texts = ["$$a$$ $$b$$", None, "", "$$b$$ $$c$$"]
        assert extract_identifiers_from_texts(texts) == ["a", "b", "c"]


class TestSubstitute:
    """Substitution in name, description and tts modes"""

    def test_name_mode(self, entity_map):
        text = "Hello $$child-1$$, meet $$char-9$$!"
        assert substitute(text, entity_map, SubstitutionMode.NAME) == "Hello Ava, meet Bo!"

    def test_unresolved_passthrough(self, entity_map):
        del entity_map["char-9"]
        text = "Hello $$child-1$$, meet $$char-9$$!"
        assert substitute(text, entity_map) == "Hello Ava, meet $$char-9$$!"

    def test_description_mode_character(self, entity_map):
        result = substitute("$$nutsy$$", entity_map, SubstitutionMode.DESCRIPTION)
        assert result == "[Nutsy, a Pet, who likes acorns, trees]"

    def test_description_mode_character_without_likes(self, entity_map):
        result = substitute("$$char-9$$", entity_map, SubstitutionMode.DESCRIPTION)
        assert result == "[Bo, a Friend]"

    def test_description_mode_child_is_plain_name(self, entity_map):
        result = substitute("$$child-1$$ plays", entity_map, SubstitutionMode.DESCRIPTION)
        assert result == "Ava plays"

    def test_mode_accepts_string(self, entity_map):
        assert substitute("$$nutsy$$", entity_map, "description").startswith("[Nutsy")

    def test_tts_mode_uses_pronunciation(self, entity_map):
        assert substitute("$$nutsy$$ and $$child-1$$", entity_map, SubstitutionMode.TTS) == "NUT-see and Ava"

    def test_legacy_form_substituted(self):
        character = Character.from_document("aVeryLongCharacterIdentifier123", {"displayName": "Zed", "type": "Toy"})
        entity_map = {"aVeryLongCharacterIdentifier123": ResolvedEntity("Zed", character)}
        assert substitute("Say hi to $aVeryLongCharacterIdentifier123$", entity_map) == "Say hi to Zed"

    def test_identity_without_placeholders(self, entity_map):
        for text in ["", "plain text", "costs $5", "$$", "$ $$ $"]:
            for mode in SubstitutionMode:
                assert substitute(text, entity_map, mode) == text

    def test_double_wins_over_adjacent_legacy_run(self, entity_map):
        text = "$abcdefghijklmnopqrst$$char-9$$"
        assert substitute(text, entity_map) == "$abcdefghijklmnopqrstBo"

    def test_mixed_forms_in_one_text(self):
        character = Character.from_document("legacyIdentifier0001", {"displayName": "Zed", "type": "Toy"})
        entity_map = {
            "legacyIdentifier0001": ResolvedEntity("Zed", character),
            "b": ResolvedEntity("Bee", Character.from_document("b", {"displayName": "Bee"})),
        }
        text = "$legacyIdentifier0001$ met $$b$$ and $$missing$$"
        assert substitute(text, entity_map) == "Zed met Bee and $$missing$$"

    def test_none_passthrough(self, entity_map):
        assert substitute(None, entity_map) is None

    def test_idempotent(self, entity_map):
        texts = [
            "Hello $$child-1$$, meet $$char-9$$ and $$missing$$!",
            "$$nutsy$$ $legacyIdentifier0001$",
        ]
        for text in texts:
            for mode in SubstitutionMode:
                once = substitute(text, entity_map, mode)
                assert substitute(once, entity_map, mode) == once

    def test_blank_display_name_keeps_placeholder(self):
        character = Character.from_document("blank", {"displayName": "", "type": "Toy"})
        entity_map = {"blank": ResolvedEntity("", character)}
        assert substitute("$$blank$$", entity_map) == "$$blank$$"

    def test_build_character_description(self):
        character = Character.from_document("x", {"displayName": "Rex", "type": "Toy", "likes": ["", "naps"]})
        assert build_character_description(character) == "[Rex, a Toy, who likes naps]"


class TestNameRewriting:
    """Display names -> $$id$$ placeholders"""

    def setup_method(self):
        self.actors = [
            ActorNameMapping(id="abc123", display_name="Nymira"),
            ActorNameMapping(id="def456", display_name="Captain Whiskers"),
            ActorNameMapping(id="ghi789", display_name="Captain"),
        ]

    def test_replaces_whole_words_case_insensitive(self):
        result = replace_names_with_placeholders("Show nymira smiling", self.actors)
        assert result == "Show $$abc123$$ smiling"

    def test_longest_name_first(self):
        result = replace_names_with_placeholders("Captain Whiskers and the Captain", self.actors)
        assert result == "$$def456$$ and the $$ghi789$$"

    def test_partial_word_not_replaced(self):
        assert replace_names_with_placeholders("Nymiras hat", self.actors) == "Nymiras hat"

    def test_empty_inputs(self):
        assert replace_names_with_placeholders("", self.actors) == ""
        assert replace_names_with_placeholders("Nymira", []) == "Nymira"

    def test_regex_characters_in_names_are_literal(self):
        actors = [ActorNameMapping(id="q1", display_name="Dr. Q")]
        assert replace_names_with_placeholders("Dr. Q waves, DrX Q stays", actors) == "$$q1$$ waves, DrX Q stays"

    def test_round_trip_with_substitution(self):
        character = Character.from_document("abc123", {"displayName": "Nymira", "type": "Friend"})
        entity_map = {"abc123": ResolvedEntity("Nymira", character)}
        written = replace_names_with_placeholders("Nymira waves", self.actors)
        assert substitute(written, entity_map) == "Nymira waves"

    def test_find_actor_names(self):
        found = find_actor_names_in_text("captain whiskers met Nymira", self.actors)
        assert found == ["Nymira", "Captain Whiskers", "Captain"]
        assert find_actor_names_in_text("nobody here", self.actors) == []
