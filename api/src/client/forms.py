"""Draft validation for the post form, run before anything is sent."""

from dataclasses import dataclass, field


MIN_TITLE_LENGTH = 5
MIN_CONTENT_LENGTH = 10
MAX_TAG_LENGTH = 20
MAX_TAGS = 5


class TagRejectedError(ValueError):
    """Tag input refused by ``PostDraft.add_tag``."""


@dataclass
class PostDraft:
    """Post being composed or edited."""

    title: str = ""
    content: str = ""
    tags: list[str] = field(default_factory=list)
    category: str = "General"

    def add_tag(self, raw: str) -> bool:
        """Add a tag typed by the user.

        Returns:
            False when the input was blank (nothing to add)

        Raises:
            TagRejectedError: Too long, duplicate or too many tags
        """
        tag = raw.strip().lower()
        if not tag:
            return False
        if len(tag) > MAX_TAG_LENGTH:
            raise TagRejectedError(f"Tag must be {MAX_TAG_LENGTH} characters or less")
        if tag in self.tags:
            raise TagRejectedError("Tag already exists")
        if len(self.tags) >= MAX_TAGS:
            raise TagRejectedError(f"You can only add up to {MAX_TAGS} tags")
        self.tags.append(tag)
        return True

    def remove_tag(self, index: int) -> None:
        del self.tags[index]

    def validate(self) -> dict[str, str]:
        """Field errors keyed by field name; empty when the draft can be sent."""
        errors: dict[str, str] = {}

        if not self.title.strip():
            errors["title"] = "Title is required"
        elif len(self.title) < MIN_TITLE_LENGTH:
            errors["title"] = f"Title must be at least {MIN_TITLE_LENGTH} characters"

        if not self.content.strip():
            errors["content"] = "Content is required"
        elif len(self.content) < MIN_CONTENT_LENGTH:
            errors["content"] = (
                f"Content must be at least {MIN_CONTENT_LENGTH} characters"
            )

        return errors
