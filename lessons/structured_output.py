# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-08
# Description: lessons/structured_output.py
# -----------------------------------------------------------------------------
# MODEL_RUNNER_BASE_URL=http://localhost:12434 MODEL_RUNNER_LLM_CHAT=ai/qwen2.5:1.5B-F16 python -m lessons.structured_output
from typing import List

from pydantic import BaseModel

from chat.ModelRunnerChat import ModelRunnerChat
from chat.types import user_message
from config.Config import Config
from utility.logging_utils import get_logger

logger = get_logger("lessons.structured_output")


class CountriesList(BaseModel):
    countries: List[str]


class CountryInfo(BaseModel):
    name: str
    capital: str
    languages: List[str]


def get_countries_list(chat: ModelRunnerChat, continent: str, number_of_countries: int) -> CountriesList:
    return chat.complete_model(
        [user_message(f"List of {number_of_countries} countries in {continent}")],
        CountriesList,
        description="List of countries in the world",
    )


def get_country_information(chat: ModelRunnerChat, country: str) -> CountryInfo:
    return chat.complete_model(
        [user_message(f"Tell me about {country}")],
        CountryInfo,
        description="Notable information about a country in the world",
    )


def main() -> None:
    cfg = Config.from_env()
    chat = ModelRunnerChat(cfg=cfg)

    countries = get_countries_list(chat, "Europe", 5)
    print("Countries List:")
    for country in countries.countries:
        info = get_country_information(chat, country)
        print(f"- {info.name}: capital={info.capital} languages={', '.join(info.languages)}")


if __name__ == "__main__":
    main()
