# sstpro/storage.py
import base64
import mimetypes
import os
import secrets
import time
from typing import Optional

import structlog
from werkzeug.utils import secure_filename

from .models import is_uuid

log = structlog.get_logger(__name__)

URL_PREFIX = "/files/appointments/"


class PhotoStorage:
    """
    Guarda a foto da visita em UPLOAD_DIR/<appointment_id>/ e devolve o
    caminho público (servido por /files/...). Em modo "dataurl" a imagem
    vira uma data URL e vai inline no registro.
    """

    def __init__(self, upload_dir: str, allowed_ext: set, max_bytes: int, mode: str = "local") -> None:
        self.upload_dir = upload_dir
        self.allowed_ext = {e.lower() for e in allowed_ext}
        self.max_bytes = max_bytes
        self.mode = mode

    @classmethod
    def from_config(cls, cfg) -> "PhotoStorage":
        return cls(
            upload_dir=cfg["UPLOAD_DIR"],
            allowed_ext=cfg["ALLOWED_PHOTO_EXT"],
            max_bytes=cfg["MAX_CONTENT_LENGTH"],
            mode=cfg.get("PHOTO_STORAGE", "local"),
        )

    def validate(self, fs) -> Optional[str]:
        """Retorna a extensão validada, ou None se não veio arquivo."""
        filename = (getattr(fs, "filename", "") or "").strip() if fs else ""
        if not filename:
            return None

        orig = secure_filename(filename)
        ext = orig.rsplit(".", 1)[-1].lower() if "." in orig else ""
        if ext not in self.allowed_ext:
            raise ValueError("Extensão não permitida. Use uma imagem (%s)." % ", ".join(sorted(self.allowed_ext)))

        fs.stream.seek(0, os.SEEK_END)
        size = fs.stream.tell()
        fs.stream.seek(0)
        if size > self.max_bytes:
            raise ValueError("Arquivo excede o tamanho máximo permitido.")
        return ext

    def save(self, appointment_id: str, fs, ext: str) -> str:
        if self.mode == "dataurl":
            mime = fs.mimetype or mimetypes.guess_type(f"x.{ext}")[0] or "application/octet-stream"
            payload = base64.b64encode(fs.stream.read()).decode("ascii")
            return f"data:{mime};base64,{payload}"

        dst_dir = self._appointment_dir(appointment_id)
        os.makedirs(dst_dir, exist_ok=True)

        stored = f"{int(time.time())}_{secrets.token_hex(4)}.{ext}"
        fs.save(os.path.join(dst_dir, stored))
        return f"{URL_PREFIX}{appointment_id}/{stored}"

    def _appointment_dir(self, appointment_id) -> str:
        # só UUID vira diretório; nada de ".." vindo da rota
        if not is_uuid(appointment_id):
            raise ValueError("Identificador de agendamento inválido.")
        return os.path.join(self.upload_dir, str(appointment_id))

    def local_path(self, url: Optional[str]) -> Optional[str]:
        """Caminho em disco de uma URL /files/appointments/<id>/<arquivo>, ou None."""
        if not url or not url.startswith(URL_PREFIX):
            return None
        appointment_id, _, name = url[len(URL_PREFIX):].partition("/")
        if not name or name != secure_filename(name):
            return None
        try:
            base = os.path.realpath(self._appointment_dir(appointment_id))
        except ValueError:
            return None
        path = os.path.realpath(os.path.join(base, name))
        if os.path.dirname(path) != base:
            return None
        return path

    def discard(self, url: Optional[str]) -> None:
        """Remove a foto gravada quando a finalização não foi concluída."""
        path = self.local_path(url)
        if not path:
            return
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError:
            log.exception("photo.discard_failed", path=path)
