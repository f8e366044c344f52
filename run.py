"""
HoloSelf Health Agent — local launcher.
"""
import platform

import uvicorn

from holoself.settings import PORT

if __name__ == "__main__":
    loop = "asyncio" if platform.system() == "Windows" else "auto"
    uvicorn.run("holoself.app:app", host="127.0.0.1", port=PORT, log_level="info", loop=loop)
