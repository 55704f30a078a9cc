# Import moved models
from domain.models.user import User
from domain.models.mantra import Mantra
from domain.models.song import Song, SongStatus
from domain.models.playlist import Playlist
from domain.models.setting import Setting
