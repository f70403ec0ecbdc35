from __future__ import annotations

import logging
import tempfile
from pathlib import Path

from aiogram import Bot, F, Router
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, FSInputFile, Message

from studydesk.domain.backup.manager import BackupManager
from studydesk.infra.picker.preset_picker import PresetFilePicker
from studydesk.ui.telegram.keyboards.backups import backups_kb
from studydesk.ui.telegram.keyboards.common import cancel_kb, confirm_kb
from studydesk.ui.telegram.keyboards.mainmenu import BTN_BACKUPS, main_menu_kb
from studydesk.ui.telegram.states.backups import ImportFlow
from studydesk.ui.telegram.texts import backups as texts

logger = logging.getLogger(__name__)

router = Router()


async def _send_backup_list(message: Message, backup_manager: BackupManager) -> None:
    listed = await backup_manager.list_backups()
    if not listed.success:
        await message.answer(texts.render_outcome_error(listed, "Listing backups"), reply_markup=backups_kb([]))
        return
    auto = await backup_manager.auto_backup_info()
    await message.answer(texts.render_backup_list(listed.value, auto), reply_markup=backups_kb(listed.value))


@router.message(Command("backups"))
@router.message(F.text == BTN_BACKUPS)
async def backups_cmd(message: Message, state: FSMContext, backup_manager: BackupManager):
    await state.clear()
    await _send_backup_list(message, backup_manager)


async def _snapshot(message: Message, backup_manager: BackupManager) -> None:
    outcome = await backup_manager.save_snapshot()
    if outcome.success:
        await message.answer(texts.SNAPSHOT_SAVED.format(name=Path(outcome.value).name))
    else:
        await message.answer(texts.render_outcome_error(outcome, "Snapshot"))


@router.message(Command("backup"))
async def snapshot_cmd(message: Message, backup_manager: BackupManager):
    await _snapshot(message, backup_manager)


@router.callback_query(F.data == "bk:snap")
async def snapshot_cb(cb: CallbackQuery, backup_manager: BackupManager):
    await cb.answer()
    await _snapshot(cb.message, backup_manager)


# ----- restore / delete -----

@router.message(Command("restore"))
async def restore_cmd(message: Message, backup_manager: BackupManager):
    parts = (message.text or "").split(maxsplit=1)
    if len(parts) < 2:
        await message.answer("Usage: /restore backup-....json (see /backups)")
        return
    name = parts[1].strip()
    await message.answer(f"Restore {name}? Current data is replaced.", reply_markup=confirm_kb(f"bk:rsc:{name}"))


@router.callback_query(F.data.startswith("bk:rs:"))
async def restore_ask_cb(cb: CallbackQuery):
    await cb.answer()
    name = (cb.data or "").split(":", 2)[-1]
    await cb.message.answer(f"Restore {name}? Current data is replaced.", reply_markup=confirm_kb(f"bk:rsc:{name}"))


@router.callback_query(F.data.startswith("bk:rsc:"))
async def restore_confirm_cb(cb: CallbackQuery, backup_manager: BackupManager):
    await cb.answer()
    # bk:rsc:<name>:yes|no
    _, _, name, choice = (cb.data or "").split(":", 3)
    if choice != "yes":
        await cb.message.answer("Restore cancelled.")
        return

    outcome = await backup_manager.restore_backup(name)
    if outcome.success:
        await cb.message.answer(texts.RESTORED, reply_markup=main_menu_kb())
    else:
        await cb.message.answer(texts.render_outcome_error(outcome, "Restore"))


@router.message(Command("delete_backup"))
async def delete_cmd(message: Message, backup_manager: BackupManager):
    parts = (message.text or "").split(maxsplit=1)
    if len(parts) < 2:
        await message.answer("Usage: /delete_backup backup-....json")
        return
    outcome = await backup_manager.delete_backup(parts[1].strip())
    await message.answer(texts.DELETED if outcome.success else texts.render_outcome_error(outcome, "Delete"))


@router.callback_query(F.data.startswith("bk:del:"))
async def delete_cb(cb: CallbackQuery, backup_manager: BackupManager):
    outcome = await backup_manager.delete_backup((cb.data or "").split(":", 2)[-1])
    if not outcome.success:
        await cb.answer(texts.render_outcome_error(outcome, "Delete"), show_alert=True)
        return
    await cb.answer(texts.DELETED)
    listed = await backup_manager.list_backups()
    if listed.success:
        auto = await backup_manager.auto_backup_info()
        await cb.message.edit_text(texts.render_backup_list(listed.value, auto), reply_markup=backups_kb(listed.value))


# ----- export / import -----

async def _export(message: Message, backup_manager: BackupManager, export_dir: Path) -> None:
    outcome = await backup_manager.export_backup(PresetFilePicker(save_dir=export_dir))
    if not outcome.success:
        await message.answer(texts.render_outcome_error(outcome, "Export"))
        return
    path = Path(outcome.value)
    await message.answer_document(FSInputFile(path, filename=path.name), caption="Backup exported.")


@router.message(Command("export"))
async def export_cmd(message: Message, backup_manager: BackupManager, export_dir: Path):
    await _export(message, backup_manager, export_dir)


@router.callback_query(F.data == "bk:export")
async def export_cb(cb: CallbackQuery, backup_manager: BackupManager, export_dir: Path):
    await cb.answer()
    await _export(cb.message, backup_manager, export_dir)


@router.message(Command("import"))
async def import_cmd(message: Message, state: FSMContext):
    await state.set_state(ImportFlow.waiting_file)
    await message.answer(texts.IMPORT_PROMPT, reply_markup=cancel_kb())


@router.callback_query(F.data == "bk:import")
async def import_cb(cb: CallbackQuery, state: FSMContext):
    await cb.answer()
    await state.set_state(ImportFlow.waiting_file)
    await cb.message.answer(texts.IMPORT_PROMPT, reply_markup=cancel_kb())


@router.message(ImportFlow.waiting_file, F.document)
async def import_file(message: Message, state: FSMContext, bot: Bot, backup_manager: BackupManager):
    document = message.document
    filename = Path(document.file_name or "backup.json").name
    if not filename.lower().endswith(".json"):
        await message.answer(texts.IMPORT_NOT_A_FILE, reply_markup=cancel_kb())
        return

    with tempfile.TemporaryDirectory(prefix="studydesk-import-") as tmp:
        path = Path(tmp) / filename
        await bot.download(document, destination=path)
        outcome = await backup_manager.import_backup(PresetFilePicker(open_paths=[str(path)]))

    if not outcome.success:
        await message.answer(texts.render_outcome_error(outcome, "Import"), reply_markup=cancel_kb())
        return

    await state.clear()
    if await backup_manager.restore_all_data(outcome.value):
        logger.info("Imported backup %s", filename)
        await message.answer(texts.RESTORED, reply_markup=main_menu_kb())
    else:
        await message.answer(texts.RESTORE_FAILED, reply_markup=main_menu_kb())


@router.message(ImportFlow.waiting_file)
async def import_not_a_file(message: Message):
    await message.answer(texts.IMPORT_NOT_A_FILE, reply_markup=cancel_kb())
