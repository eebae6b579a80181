from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import declarative_base

# Catalog tables are owned by the catalog sync; only the columns read or
# incremented here are mapped.
CatalogBase = declarative_base()


class MovieDB(CatalogBase):
    __tablename__ = 'movies'

    id = Column(Integer, primary_key=True)
    tmdb_id = Column(Integer, unique=True, nullable=False)
    title = Column(String(255), nullable=False)
    view_count = Column(Integer, default=0)
    click_count = Column(Integer, default=0)
    updated_at = Column(DateTime)


class TVSeriesDB(CatalogBase):
    __tablename__ = 'tv_series'

    id = Column(Integer, primary_key=True)
    tmdb_id = Column(Integer, unique=True, nullable=False)
    title = Column(String(255), nullable=False)
    view_count = Column(Integer, default=0)
    click_count = Column(Integer, default=0)
    updated_at = Column(DateTime)
