from __future__ import annotations

import pytest

from vigenere import vigenere_encrypt

# Plain English prose, long enough for column statistics to settle.
PASSAGE = (
    "The lighthouse keeper climbed the stairs every evening at the same hour, "
    "carrying a lamp in one hand and a small notebook in the other. In the "
    "notebook he wrote the state of the weather, the direction of the wind, and "
    "the names of the ships that passed the point before dark. Most nights there "
    "was little to record, and he filled the empty lines with notes about the "
    "birds that nested on the rocks below the tower. Over the years the notebook "
    "became a history of the coast, and the people of the village came to him "
    "when they wanted to know when the storms had come in the past and how long "
    "they had lasted. He never thought of himself as a historian. He thought of "
    "himself as a man who kept a light burning so that other men could find their "
    "way home, and the writing was only a habit that helped him stay awake through "
    "the long hours of the watch. When the new electric lamp was installed and the "
    "keeper was told that his work was no longer needed, he gave the notebooks to "
    "the school in the village. The schoolmaster read them aloud to the children on "
    "winter afternoons, and in that way the old man and his tower were remembered "
    "long after the last ship he had counted had been broken up for scrap. The "
    "children liked best the stories of the great storm, when the waves rose higher "
    "than the windows of the keeper's room and the light was the only thing that "
    "stood between the fishing boats and the rocks."
)

KEY = "LEMON"


@pytest.fixture
def passage() -> str:
    return PASSAGE


@pytest.fixture
def ciphertext() -> str:
    return vigenere_encrypt(PASSAGE, KEY)
