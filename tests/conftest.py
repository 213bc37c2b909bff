"""
Shared fixtures: small page-structured transcripts and matching document text.
"""

import pytest

# Line texts keep their trailing newline, as transcript lines do
SAMPLE_PAGES = [
    [
        "\\title{The Long Road}\n",
        "Preface text about the journey.\n",
        "\\section*{Chapter 1: Beginnings}\n",
        "The river ran north past the old mill.\n",
        "Nobody in the village remembered the mill keeper.\n",
    ],
    [
        "\\section*{Chapter 3: Origins}\n",
        "The lighthouse keeper kept a ledger of ships.\n",
        "Every ship was written down with care.\n",
    ],
    [
        "## Chapter 30 Notes\n",
        "The lighthouse keeper kept a ledger of ships.\n",
        "Appendix material.\n",
    ],
]


def build_transcript(pages, start_page=1):
    """Build a transcript mapping from lists of line texts, one list per page."""
    return {
        "pages": [
            {
                "page": start_page + page_pos,
                "image_id": f"img-{start_page + page_pos}",
                "lines": [
                    {
                        "text": text,
                        "line": line_pos + 1,
                        "column": 0,
                        "region": {
                            "top_left_x": 0,
                            "top_left_y": line_pos * 10,
                            "width": 100,
                            "height": 10,
                        },
                    }
                    for line_pos, text in enumerate(lines)
                ],
            }
            for page_pos, lines in enumerate(pages)
        ]
    }


@pytest.fixture
def transcript_factory():
    return build_transcript


@pytest.fixture
def sample_transcript():
    return build_transcript(SAMPLE_PAGES)


@pytest.fixture
def sample_markdown():
    return "".join(text for page in SAMPLE_PAGES for text in page)
