"""
validators.py -- Validacion de slugs y rutas de contenido.

Los slugs llegan desde el chat (a veces con comillas, porque la
gente escribe `publica "mi-articulo"`) y terminan como nombre de
directorio dentro del repo de contenido:

    articles/{slug}/article.json
    active_places/{slug}/poi.json

Cada funcion de validacion retorna una tupla (es_valido, mensaje).
Si es_valido es True, el mensaje sera una cadena vacia.

Uso:
    from scottie.utils.validators import strip_quotes, validate_slug

    slug = strip_quotes('"mi-articulo"')
    valido, error = validate_slug(slug)
"""

from __future__ import annotations

import re

# Letras, numeros, guion, guion bajo y punto; empieza con alfanumerico.
# Ejemplos validos: "king-st-pilot", "2023-budget", "poi_123"
# Ejemplos invalidos: "../etc", "con espacio", "a/b"
SLUG_PATTERN: re.Pattern[str] = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")

# Los slugs son nombres de directorio; GitHub limita las rutas a 255.
MAX_SLUG_LENGTH: int = 200


def strip_quotes(value: str) -> str:
    """
    Quita UN par de comillas que envuelvan el valor completo.

    Ejemplos:
        '"hola"'  -> 'hola'
        "'hola'"  -> 'hola'
        '"hola'   -> '"hola'   (no coinciden, se deja igual)
        '"'       -> '"'       (muy corto)
    """
    if len(value) < 2:
        return value
    first, last = value[0], value[-1]
    if (first == '"' and last == '"') or (first == "'" and last == "'"):
        return value[1:-1]
    return value


def validate_slug(slug: str) -> tuple[bool, str]:
    """
    Valida que un slug sea apto como nombre de directorio en el repo.

    Reglas:
    - No puede estar vacio
    - Maximo 200 caracteres
    - Sin separadores de ruta ni ".." (no puede escapar de su carpeta)
    - Solo letras, numeros, guion, guion bajo y punto

    Returns:
        Tupla (es_valido, mensaje_de_error).
    """
    if not isinstance(slug, str):
        return False, "El slug debe ser una cadena de texto"

    if not slug:
        return False, "El slug no puede estar vacio"

    if len(slug) > MAX_SLUG_LENGTH:
        return False, (
            f"El slug es demasiado largo ({len(slug)} chars, "
            f"maximo {MAX_SLUG_LENGTH})"
        )

    if "/" in slug or "\\" in slug or ".." in slug:
        return False, f"El slug no puede contener rutas: '{slug}'"

    if not SLUG_PATTERN.match(slug):
        chars_invalidos = set(re.findall(r"[^A-Za-z0-9._-]", slug))
        if chars_invalidos:
            return False, (
                f"El slug contiene caracteres invalidos: {sorted(chars_invalidos)}. "
                "Solo se permiten letras, numeros, '-', '_' y '.'."
            )
        return False, f"El slug debe empezar con letra o numero: '{slug}'"

    return True, ""
