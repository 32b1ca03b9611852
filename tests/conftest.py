import os

import pytest

# Settings are cached on first import of the app; give it a key up front.
os.environ["FIRECRAWL_API_KEY"] = "fc-test-key"
os.environ.setdefault("LOG_LEVEL", "warning")


@pytest.fixture
def firecrawl_response():
    return {
        "success": True,
        "data": {
            "web": [
                {
                    "url": "https://en.wikipedia.org/wiki/Printing_press",
                    "title": "Printing press - Wikipedia",
                    "description": "A printing press is a mechanical device for applying pressure to an inked surface.",
                    "position": 1,
                    "markdown": (
                        "[Jump to content](#bodyContent)\n"
                        "From Wikipedia, the free encyclopedia\n"
                        "![Press](https://upload.wikimedia.org/press.jpg)\n"
                        "A **printing press** is a mechanical device for applying pressure to an inked surface.\n"
                        "Johannes Gutenberg developed a movable-type press around 1440 in Mainz.\n"
                    ),
                },
                {
                    "url": "https://www.history.com/articles/printing-press",
                    "title": "",
                    "description": "The printing press spread literacy across Europe.",
                    "position": 2,
                },
                {
                    "url": "https://example.org/press",
                    "title": "Press overview",
                    "metadata": {"description": "Overview of early printing technology."},
                    "category": "research",
                    "position": 3,
                },
            ]
        },
    }
