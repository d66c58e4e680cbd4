"""llms_scout.generation: текстовая модель и генерация секций по партиям."""
