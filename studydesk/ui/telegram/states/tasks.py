from aiogram.fsm.state import StatesGroup, State


class AddTaskFlow(StatesGroup):
    title = State()
    due_date = State()
    time = State()
    task_type = State()
