"""Tests for Maven repository declaration."""

from buildscript.repositories import (
    CURSE_MAVEN_STANZA,
    MODRINTH_MAVEN_STANZA,
    ensure_curse_maven_repo,
    ensure_modrinth_maven_repo,
    ensure_repo,
)


class TestEnsureRepo:
    """Tests for ensure_repo placement rules."""

    def test_marker_present_leaves_text_unchanged(self):
        """Any marker occurrence counts as already declared."""
        text = 'dependencies {\n    implementation fg.deobf("curse.maven:jei-238222:1")\n}\n'

        assert ensure_curse_maven_repo(text) == text

    def test_single_string_marker(self):
        """A plain string is accepted as the marker."""
        text = "// uses https://example.com/maven\n"

        assert ensure_repo(text, "https://example.com/maven", "    maven { }") == text

    def test_appends_to_existing_repositories_block(self):
        """The stanza becomes the last entry of the existing block."""
        text = "repositories {\n    mavenCentral()\n}\n"

        result = ensure_curse_maven_repo(text)

        assert result == "repositories {\n    mavenCentral()\n" + CURSE_MAVEN_STANZA + "\n}\n"

    def test_existing_block_without_trailing_newline(self):
        """A newline is added before the stanza when the body lacks one."""
        text = "repositories { mavenCentral() }"

        result = ensure_modrinth_maven_repo(text)

        assert result == "repositories { mavenCentral() \n" + MODRINTH_MAVEN_STANZA + "\n}"

    def test_new_block_after_plugins(self):
        """A leading plugins block is followed by the new repositories block."""
        text = "plugins {\n    id 'java'\n}\n\ndependencies {\n}\n"

        result = ensure_modrinth_maven_repo(text)

        assert result.startswith(
            "plugins {\n    id 'java'\n}\n\nrepositories {\n" + MODRINTH_MAVEN_STANZA + "\n}\n\n"
        )
        assert result.index("repositories {") < result.index("dependencies {")

    def test_new_block_prepended(self):
        """Without repositories or plugins the block goes to the top."""
        text = "dependencies {\n}\n"

        result = ensure_curse_maven_repo(text)

        assert result == "repositories {\n" + CURSE_MAVEN_STANZA + "\n}\n\ndependencies {\n}\n"

    def test_idempotent(self):
        """Ensuring twice equals ensuring once."""
        for text in (
            "",
            "dependencies {\n}\n",
            "plugins {\n}\n",
            "repositories {\n    mavenCentral()\n}\n",
        ):
            once = ensure_curse_maven_repo(text)
            assert ensure_curse_maven_repo(once) == once

    def test_no_duplicate_repositories_block(self):
        """Inserting twice into a script without repositories yields one block."""
        text = "dependencies {\n}\n"

        result = ensure_modrinth_maven_repo(ensure_modrinth_maven_repo(text))

        assert result.count("repositories {") == 1
        assert result.count("https://api.modrinth.com/maven") == 1

    def test_both_repositories_share_block(self):
        """A second repository joins the block created for the first."""
        result = ensure_modrinth_maven_repo(ensure_curse_maven_repo("dependencies {\n}\n"))

        assert result.count("repositories {") == 1
        assert "https://cursemaven.com" in result
        assert "https://api.modrinth.com/maven" in result
