import os

APP_DIR = os.path.dirname(os.path.abspath(__file__))
CONFIG_DIR = os.environ.get('ARCSHELF_CONFIG_DIR', os.path.join(APP_DIR, 'config'))
DATA_DIR = os.environ.get('ARCSHELF_DATA_DIR', os.path.join(APP_DIR, 'data'))
CONFIG_FILE = os.path.join(CONFIG_DIR, 'settings.yaml')
DB_FILE = os.path.join(CONFIG_DIR, 'library.db')

LIBRARY_EXPORT_FILE = 'library.json'
ARCHIVE_DIR_NAME = 'archive'
BACKUP_DIR_NAME = 'backups'
BACKUP_PREFIX = 'library-'

ARCSHELF_DB = 'sqlite:///' + DB_FILE

DEFAULT_SETTINGS = {
    "library": {
        "data_dir": DATA_DIR,
        "backup_keep": 4,
    },
    "deployment": {
        "compression_level": 9,
    },
}

CONTENT_TYPE_UNKNOWN = 'Unknown'
CONTENT_TYPE_GAME = 'Game'
CONTENT_TYPE_COMIC = 'Comic'
CONTENT_TYPE_NOVEL = 'Novel'
CONTENT_TYPE_MUSIC = 'Music'
CONTENT_TYPE_ANIME = 'Anime'

CONTENT_TYPES = [
    CONTENT_TYPE_UNKNOWN,
    CONTENT_TYPE_GAME,
    CONTENT_TYPE_COMIC,
    CONTENT_TYPE_NOVEL,
    CONTENT_TYPE_MUSIC,
    CONTENT_TYPE_ANIME,
]

PLATFORM_STEAM = 'Steam'
PLATFORM_DLSITE = 'DLSite'
PLATFORM_OTHER = 'Other'
PLATFORM_UNKNOWN = 'Unknown'

PLATFORM_KINDS = [
    PLATFORM_STEAM,
    PLATFORM_DLSITE,
    PLATFORM_OTHER,
    PLATFORM_UNKNOWN,
]

DEFAULT_VERSION = '1.0'

ZIP_EXTENSIONS = [
    '.zip',
]

TAR_EXTENSIONS = [
    '.tar',
    '.tar.gz',
    '.tgz',
    '.tar.bz2',
    '.tbz2',
    '.tar.xz',
    '.txz',
]

SEVENZIP_EXTENSIONS = [
    '.7z',
]

RAR_EXTENSIONS = [
    '.rar',
]

# Extension of archives packed by library_create
CREATED_ARCHIVE_EXTENSION = '.7z'
