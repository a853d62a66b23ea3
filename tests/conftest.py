import pytest

from ihostit.db.manager import DatabaseManager
from ihostit.db.store import CatalogStore

SAMPLE_README = """# Awesome-Selfhosted

Self-hosting is the practice of hosting and managing applications on your own server(s).

## Contents

- [Software](#software)
- [List of Licenses](#list-of-licenses)

## Software

### Analytics

**[`^        back to top        ^`](#awesome-selfhosted)**

- [Matomo](https://matomo.org/) - Web analytics that protects your data. ([Demo](https://demo.matomo.cloud/), [Source Code](https://github.com/matomo-org/matomo)) `GPL-3.0` `PHP`
- [Plausible Analytics](https://plausible.io/) - Simple, privacy-friendly alternative to Google Analytics. ([Source Code](https://github.com/plausible/analytics)) `AGPL-3.0` `Elixir`

### Archiving and Digital Preservation (DP)

### Communication - Email - Complete Solutions

Full mail servers bundled with webmail.

- [Mailcow](https://mailcow.email/) - Dockerized mailserver. ([Source Code](https://github.com/mailcow/mailcow-dockerized)) `GPL-3.0` `Docker`

## List of Licenses

### Should Not Appear

- [Hidden](https://hidden.example) - Outside the software section. `MIT` `Go`
"""


@pytest.fixture
def sample_readme():
    return SAMPLE_README


@pytest.fixture
def store(tmp_path):
    manager = DatabaseManager(f"sqlite:///{tmp_path / 'ihostit.db'}")
    catalog_store = CatalogStore(manager)
    catalog_store.initialize()
    return catalog_store
