"""Dispatchers evaluated inside the application's processes.

A bridge call never ships a closure. It ships a versioned request
``{"v": 1, "op": "<kind>", "args": {...}}`` to one of the two fixed functions
below, which runs the operation in place and answers with an envelope::

    {"ok": true, "value": <copyable value>}
    {"ok": false, "error": {"kind": "<kind>", "message": "...", ...}}

Failures travel back as data so they survive the process boundary with their
kind intact.
"""

from __future__ import annotations

PROTOCOL_VERSION = 1

# Shared helpers: envelope constructors, by-value copy and version check.
_PRELUDE = r"""
  const ok = (value) => ({ ok: true, value: value === undefined ? null : value })
  const fail = (kind, message, extra) =>
    ({ ok: false, error: Object.assign({ kind, message: String(message) }, extra || {}) })
  const describe = (err) => (err && err.message ? err.message : String(err))
  const copy = (value) => {
    if (value === undefined || value === null) return ok(null)
    if (typeof value === 'function' || typeof value === 'symbol') {
      return fail('not_serializable', `value of type ${typeof value} cannot cross the process boundary`)
    }
    try {
      return ok(JSON.parse(JSON.stringify(value)))
    } catch (err) {
      return fail('not_serializable', describe(err))
    }
  }
  if (!request || request.v !== __VERSION__) {
    return fail('protocol_version', `unsupported bridge protocol version: ${request && request.v}`)
  }
  const args = request.args || {}
"""

_MAIN_TEMPLATE = r"""async (electron, request) => {
__PRELUDE__
  const { app, Menu, ipcMain, BrowserWindow } = electron
  const findMenuItem = (id) => {
    const menu = Menu.getApplicationMenu()
    return menu ? menu.getMenuItemById(id) : null
  }
  const missingItem = (id) => fail('menu_item_not_found', `Menu item with id ${id} not found`, { id })
  // Stand-in for the IpcMainEvent a real renderer message would carry.
  const syntheticEvent = () => ({
    sender: null, senderFrame: null, processId: 0, frameId: 0, returnValue: undefined, reply () {},
  })
  try {
    await app.whenReady()
    switch (request.op) {
      case 'menu.exists':
        return ok(!!findMenuItem(args.id))
      case 'menu.click': {
        const item = findMenuItem(args.id)
        if (!item) return missingItem(args.id)
        return copy(item.click())
      }
      case 'menu.attribute': {
        const item = findMenuItem(args.id)
        if (!item) return missingItem(args.id)
        return copy(item[args.attribute])
      }
      case 'ipcMain.emit':
        return ok(ipcMain.emit(args.channel, syntheticEvent(), ...(args.args || [])))
      case 'ipcMain.listenerCount':
        return ok(ipcMain.listenerCount(args.channel))
      case 'ipcMain.invokeFirstListener': {
        if (ipcMain.listenerCount(args.channel) === 0) {
          return fail('no_listener', `No listeners for message ${args.channel}`, { channel: args.channel })
        }
        const listener = ipcMain.listeners(args.channel)[0]
        return copy(await listener(syntheticEvent(), ...(args.args || [])))
      }
      case 'app.windowCount':
        return ok(BrowserWindow.getAllWindows().length)
      case 'function': {
        const fn = (0, eval)(`(${args.source})`)
        return copy(await fn(electron, args.arg))
      }
      default:
        return fail('unknown_op', `unknown bridge operation: ${request.op}`)
    }
  } catch (err) {
    return fail('remote_error', describe(err))
  }
}"""

_RENDERER_TEMPLATE = r"""async (request) => {
__PRELUDE__
  if (typeof require !== 'function') {
    return fail('renderer_isolated',
      'window has no require(); create it with nodeIntegration: true and contextIsolation: false')
  }
  try {
    const { ipcRenderer } = require('electron')
    switch (request.op) {
      case 'ipcRenderer.send':
        ipcRenderer.send(args.channel, ...(args.args || []))
        return ok(null)
      case 'ipcRenderer.invoke':
        return copy(await ipcRenderer.invoke(args.channel, ...(args.args || [])))
      default:
        return fail('unknown_op', `unknown bridge operation: ${request.op}`)
    }
  } catch (err) {
    return fail('remote_error', describe(err))
  }
}"""


def _render(template: str) -> str:
    prelude = _PRELUDE.replace("__VERSION__", str(PROTOCOL_VERSION))
    return template.replace("__PRELUDE__", prelude.strip("\n"))


MAIN_DISPATCHER = _render(_MAIN_TEMPLATE)
RENDERER_DISPATCHER = _render(_RENDERER_TEMPLATE)
