"""
Mock TVmaze API responses for testing.
"""

TVMAZE_SHOW = {
    "id": 169,
    "url": "https://www.tvmaze.com/shows/169/breaking-bad",
    "name": "Breaking Bad",
    "type": "Scripted",
    "language": "English",
    "genres": ["Drama", "Crime", "Thriller"],
    "status": "Ended",
    "premiered": "2008-01-20",
    "image": {
        "medium": "https://static.tvmaze.com/uploads/images/medium_portrait/0/2400.jpg",
        "original": "https://static.tvmaze.com/uploads/images/original_untouched/0/2400.jpg",
    },
    "summary": "<p><b>Breaking Bad</b> follows a chemistry teacher.</p>",
}

TVMAZE_EPISODE = {
    "id": 12193,
    "name": "Cat's in the Bag...",
    "season": 1,
    "number": 2,
    "airdate": "2008-01-27",
    "runtime": 60,
    "summary": "<p>Walt and Jesse attempt to tie up loose ends &amp; move on.</p>",
}
