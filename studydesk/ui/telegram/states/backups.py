from aiogram.fsm.state import StatesGroup, State


class ImportFlow(StatesGroup):
    waiting_file = State()
