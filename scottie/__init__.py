"""
Scottie — Robot de publicación de contenido para el repo de geomodulus.

Toma artículos y lugares (JSON, HTML, JS, GeoJSON), los formatea
con prettier y los publica en GitHub como Pull Request (o como
commit directo), sin checkout local.

- publishing/    → Branches, change sets, commits y PRs vía la API
- notifications/ → Avisos en Slack
- utils/         → Logger y validadores

Uso:
    python -m scottie publish article king-st-pilot --body-html body.html --title "..."
    python -m scottie fetch article king-st-pilot
    python -m scottie health
"""

__version__ = "1.0.0"
