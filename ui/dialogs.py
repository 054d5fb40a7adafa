import flet as ft


def open_alert_dialog(
    page: ft.Page,
    *,
    title: str,
    content: ft.Control,
    actions: list[ft.Control],
    modal: bool = True,
) -> ft.AlertDialog:
    dlg = ft.AlertDialog(
        modal=modal,
        title=ft.Text(title),
        content=content,
        actions=actions,
        actions_alignment=ft.MainAxisAlignment.END,
    )
    page.overlay.append(dlg)
    dlg.open = True
    page.update()
    return dlg


def close_alert_dialog(page: ft.Page, dlg: ft.AlertDialog | None):
    if dlg is None:
        return
    dlg.open = False
    page.update()
    try:
        page.overlay.remove(dlg)
    except ValueError:
        pass
    page.update()


def toast(page: ft.Page, text: str):
    snack = ft.SnackBar(ft.Text(text))
    page.overlay.append(snack)
    snack.open = True
    page.update()
