"""
__main__.py — Permite ejecutar Scottie como módulo.

    python -m scottie publish article mi-slug --body-html body.html --title "..."
"""

from scottie.cli import main

if __name__ == "__main__":
    main()
