from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder

from dependencies import get_repository
from models import *
from repository import Repository

game_router = APIRouter(
    tags=["Game"]
)

@game_router.get("/games", tags=["Game"])
def get_games(repo: Repository = Depends(get_repository)):
    return jsonable_encoder([Game(id=g.id, name=g.name) for g in repo.find(GameDB, order_by=GameDB.id.asc())])


@game_router.post("/games", status_code=201, tags=["Game"])
def create_game(game: Game, repo: Repository = Depends(get_repository)):
    with repo.transaction():
        db_game = repo.create(GameDB, name=game.name)
    return jsonable_encoder(Game(id=db_game.id, name=db_game.name))
