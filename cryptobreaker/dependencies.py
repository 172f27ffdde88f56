from typing import Annotated

from fastapi import Depends

from cryptobreaker.core.config import Settings, get_settings


# Settings dependency
SettingsDep = Annotated[Settings, Depends(get_settings)]
