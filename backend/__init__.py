"""Backend del motor de ciclo de vida de remisiones."""
