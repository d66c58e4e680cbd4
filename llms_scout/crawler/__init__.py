"""llms_scout.crawler: область сайта, frontier, загрузка страниц и пакетный обход."""
