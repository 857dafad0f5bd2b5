# Genre Classification Configuration
# Spotify genres are very fine grained ("alternative metalcore", "bedroom pop").
# Each entry maps a Genre tag written to Notion to the keywords that select it:
# a Spotify genre gets the tag when any keyword appears in it.
# Order matters only for readability; a genre may match several tags.

GENRE_CLASSIFICATION = {
    "Rock": ["rock", "grunge", "shoegaze"],
    "Metal": ["metal", "djent"],
    "Punk": ["punk", "emo"],
    "Pop": ["pop"],
    "Hip Hop": ["hip hop", "rap", "trap", "drill"],
    "R&B": ["r&b", "soul", "funk"],
    "Electronic": ["electro", "house", "techno", "edm", "dubstep", "drum and bass", "trance"],
    "Jazz": ["jazz", "bebop", "swing"],
    "Classical": ["classical", "orchestra", "baroque", "opera"],
    "Folk": ["folk", "singer-songwriter", "americana"],
    "Country": ["country", "bluegrass"],
    "Ambient": ["ambient", "drone"],
    "Latin": ["latin", "reggaeton", "salsa", "bossa nova"],
    "Indie": ["indie"],
    "Soundtrack": ["soundtrack", "video game music", "anime score"],
}

# Write genres that match no entry above as their own tag
KEEP_UNMATCHED_GENRES = False

# Tags added for the release classification
EP_TAG = "EP"
SINGLE_TAG = "Single"
COMPILATION_TAG = "Compilation"
