"""Tests for the core domain models: folders, views, messages, profiles."""

import pytest

from hexmail.core import (
    DEFAULT_VIEWS,
    Attachment,
    FolderTag,
    Message,
    RealFolder,
    StarredView,
    UserProfile,
    ViewScope,
    allowed_moves,
)


class TestMoveLattice:

    @pytest.mark.parametrize("current", [FolderTag.INBOX, FolderTag.SENT, FolderTag.DRAFTS])
    def test_active_folders_offer_archive_and_trash(self, current):
        assert allowed_moves(current) == {FolderTag.ARCHIVE, FolderTag.TRASH}

    def test_archive_only_offers_trash(self):
        assert allowed_moves(FolderTag.ARCHIVE) == {FolderTag.TRASH}

    def test_trash_is_terminal(self):
        assert allowed_moves(FolderTag.TRASH) == frozenset()

    def test_no_folder_moves_back_to_inbox(self):
        for folder in FolderTag:
            assert FolderTag.INBOX not in allowed_moves(folder)


class TestViewScope:

    def test_parse_folder(self):
        assert ViewScope.parse("inbox") == RealFolder(FolderTag.INBOX)
        assert ViewScope.parse(" Archive ") == RealFolder(FolderTag.ARCHIVE)

    def test_parse_starred(self):
        assert ViewScope.parse("Starred") == StarredView()

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="Unknown view"):
            ViewScope.parse("spam")

    def test_base_scope_is_abstract(self):
        with pytest.raises(TypeError):
            ViewScope()

    def test_labels_and_names(self):
        assert RealFolder(FolderTag.SENT).label == "Sent"
        assert RealFolder(FolderTag.SENT).name == "sent"
        assert StarredView().label == "Starred"
        assert StarredView().name == "starred"

    def test_real_folder_retains_by_folder(self):
        message = Message(id="m1", sender_id="u1", folder=FolderTag.INBOX)
        inbox = RealFolder(FolderTag.INBOX)
        assert inbox.retains(message)

        message.folder = FolderTag.ARCHIVE
        assert not inbox.retains(message)

    def test_starred_view_retains_by_flag(self):
        message = Message(id="m1", sender_id="u1", folder=FolderTag.TRASH, starred=True)
        assert StarredView().retains(message)

        message.starred = False
        assert not StarredView().retains(message)

    def test_sidebar_order(self):
        assert [scope.name for scope in DEFAULT_VIEWS] == [
            "inbox", "starred", "sent", "archive", "trash", "drafts",
        ]

    def test_scopes_are_hashable(self):
        assert len({RealFolder(FolderTag.INBOX), RealFolder(FolderTag.INBOX), StarredView()}) == 2


class TestMessage:

    def test_defaults(self):
        message = Message(id="m1", sender_id="u1")
        assert message.folder is FolderTag.INBOX
        assert not message.read
        assert not message.starred
        assert message.sender_name == "Unknown User"
        assert not message.is_reply
        assert not message.is_forward

    def test_thread_linkage(self):
        assert Message(id="m2", sender_id="u1", parent_id="m1").is_reply
        assert Message(id="m3", sender_id="u1", forward_id="m1", is_draft=True).is_forward

    def test_preview_is_single_line_and_truncated(self):
        message = Message(id="m1", sender_id="u1", content="line one\nline two\n" + "x" * 200)
        assert "\n" not in message.preview
        assert len(message.preview) == 100
        assert message.preview.endswith("...")

    def test_attachment_serialized_form(self):
        attachment = Attachment(name="report.pdf", locator="https://files/report.pdf")
        assert attachment.to_dict() == {"name": "report.pdf", "url": "https://files/report.pdf"}
        assert Attachment.from_dict(attachment.to_dict()) == attachment


class TestUserProfile:

    def test_display_name_defaults_to_email(self):
        profile = UserProfile(id="u1", email="ann@hexmail.com")
        assert profile.display_name == "ann@hexmail.com"

    def test_str(self):
        profile = UserProfile(id="u1", email="ann@hexmail.com", display_name="Ann")
        assert str(profile) == "Ann <ann@hexmail.com>"
