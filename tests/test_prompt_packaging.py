"""
Tests for verifying prompts are included in package and can be loaded after installation.

Prompts are found via the Path(__file__).parent pattern, so they must ship
next to the modules that use them.
"""

import sys
import subprocess
import tempfile
import zipfile
from pathlib import Path

import pytest

STRUCTURE_PROMPTS = ["cv_structure_system", "cv_structure_user"]

ASSIST_PROMPTS = [
    f"assist_{kind}_{role}"
    for kind in (
        "rewrite_intro",
        "generate_intro_from_experience",
        "generate_milestones",
        "rewrite_bullet",
        "tighten_text",
    )
    for role in ("system", "user")
]


class TestPromptPackaging:
    """Tests to verify prompts are included in the installed package."""

    def test_prompts_accessible_via_pathlib(self):
        """Test that prompts are accessible via Path(__file__).parent pattern."""
        from cvdocument.assist import openai_assistant
        from cvdocument.extractors import openai_structurer

        for module, names in ((openai_structurer, STRUCTURE_PROMPTS), (openai_assistant, ASSIST_PROMPTS)):
            prompts_dir = Path(module.__file__).parent / "prompts"
            assert prompts_dir.is_dir(), f"Prompts directory not found at {prompts_dir}"
            for name in names:
                prompt_path = prompts_dir / f"{name}.md"
                assert prompt_path.is_file(), f"Prompt file not found: {prompt_path}"
                assert prompt_path.read_text(encoding="utf-8").strip(), f"Prompt file is empty: {prompt_path}"

    def test_all_prompts_loadable(self):
        """Test that all prompt files can be loaded via load_prompt function."""
        from cvdocument.shared import load_prompt

        for prompt_name in STRUCTURE_PROMPTS + ASSIST_PROMPTS:
            result = load_prompt(prompt_name)
            assert isinstance(result, str) and result, f"Failed to load prompt: {prompt_name}"

    def test_missing_prompt_is_none(self):
        """Test that unknown prompt names yield None."""
        from cvdocument.shared import format_prompt, load_prompt

        assert load_prompt("no_such_prompt") is None
        assert format_prompt("no_such_prompt", x=1) is None

    @pytest.mark.slow
    def test_prompts_in_built_distribution(self):
        """
        Build a wheel and check the prompt files are inside.

        Marked as slow since it involves building the package.
        """
        project_root = Path(__file__).parent.parent

        with tempfile.TemporaryDirectory() as tmpdir:
            tmpdir_path = Path(tmpdir)
            result = subprocess.run(
                [sys.executable, "-m", "pip", "wheel", str(project_root), "--no-deps", "-w", str(tmpdir_path)],
                capture_output=True,
                text=True,
            )
            if result.returncode != 0:
                pytest.skip(f"Package build failed: {result.stderr}")

            wheel_files = list(tmpdir_path.glob("*.whl"))
            assert wheel_files, "No wheel file created"

            with zipfile.ZipFile(wheel_files[0]) as zf:
                namelist = zf.namelist()

            expected = [f"cvdocument/extractors/prompts/{n}.md" for n in STRUCTURE_PROMPTS]
            expected += [f"cvdocument/assist/prompts/{n}.md" for n in ASSIST_PROMPTS]
            for expected_prompt in expected:
                assert expected_prompt in namelist, f"Prompt not in wheel: {expected_prompt}"
