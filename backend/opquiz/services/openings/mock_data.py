from opquiz.models import Opening

# Built-in catalogue served when no playlist is configured or it fails to load
MOCK_OPENINGS = [
    Opening(
        id='naruto-blue-bird',
        anime_title='Naruto Shippuden',
        opening_title='Blue Bird',
        audio_url='https://www.soundhelix.com/examples/mp3/SoundHelix-Song-1.mp3',
    ),
    Opening(
        id='aot-guren-no-yumiya',
        anime_title='Attack on Titan',
        opening_title='Guren no Yumiya',
        audio_url='https://www.soundhelix.com/examples/mp3/SoundHelix-Song-2.mp3',
    ),
    Opening(
        id='fmab-again',
        anime_title='Fullmetal Alchemist: Brotherhood',
        opening_title='Again',
        audio_url='https://www.soundhelix.com/examples/mp3/SoundHelix-Song-3.mp3',
    ),
    Opening(
        id='death-note-world',
        anime_title='Death Note',
        opening_title='The World',
        audio_url='https://www.soundhelix.com/examples/mp3/SoundHelix-Song-4.mp3',
    ),
    Opening(
        id='demon-slayer-gurenge',
        anime_title='Demon Slayer',
        opening_title='Gurenge',
        audio_url='https://www.soundhelix.com/examples/mp3/SoundHelix-Song-5.mp3',
    ),
]
