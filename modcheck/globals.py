"""Names that resolve without a declaration in browser, Node.js and test runtimes."""

from __future__ import annotations


_LANGUAGE = """
console Math JSON Date RegExp Array Object String Number Boolean Function Symbol Error
Promise Set Map WeakSet WeakMap WeakRef FinalizationRegistry BigInt Proxy Reflect Atomics
parseInt parseFloat isNaN isFinite decodeURI decodeURIComponent encodeURI encodeURIComponent
eval undefined Infinity NaN arguments globalThis structuredClone
TypeError ReferenceError SyntaxError RangeError EvalError URIError AggregateError
ArrayBuffer SharedArrayBuffer DataView Int8Array Uint8Array Uint8ClampedArray Int16Array
Uint16Array Int32Array Uint32Array Float32Array Float64Array BigInt64Array BigUint64Array
Generator GeneratorFunction AsyncFunction AsyncGenerator AsyncGeneratorFunction
Intl Collator DateTimeFormat NumberFormat PluralRules RelativeTimeFormat ListFormat Locale
DisplayNames Segmenter escape unescape
"""

_NODE = """
process require module exports __filename __dirname global Buffer
setTimeout setInterval clearTimeout clearInterval setImmediate clearImmediate queueMicrotask
NodeJS
"""

_BROWSER = """
window self frames parent top opener closed length name status innerHeight innerWidth
outerHeight outerWidth pageXOffset pageYOffset screenX screenY scrollX scrollY devicePixelRatio
document navigator location history screen performance crypto
localStorage sessionStorage indexedDB caches cookieStore
fetch XMLHttpRequest WebSocket EventSource Request Response Headers AbortController AbortSignal
Image Audio MediaRecorder MediaStream AudioContext OfflineAudioContext MediaSource
CanvasRenderingContext2D ImageData Path2D ImageBitmap OffscreenCanvas
WebGLRenderingContext WebGL2RenderingContext
Worker SharedWorker ServiceWorker MessageChannel MessagePort BroadcastChannel importScripts
postMessage File FileList FileReader Blob FormData URLSearchParams URL
Event CustomEvent EventTarget addEventListener removeEventListener dispatchEvent
MouseEvent KeyboardEvent TouchEvent WheelEvent FocusEvent InputEvent PointerEvent DragEvent
ClipboardEvent StorageEvent MessageEvent ErrorEvent ProgressEvent PopStateEvent HashChangeEvent
Node Element Document DocumentFragment Text Comment NodeList HTMLCollection DOMParser
Range Selection MutationObserver IntersectionObserver ResizeObserver
HTMLElement HTMLAnchorElement HTMLButtonElement HTMLCanvasElement HTMLDivElement HTMLFormElement
HTMLImageElement HTMLInputElement HTMLSelectElement HTMLTextAreaElement HTMLVideoElement
HTMLAudioElement HTMLIFrameElement HTMLScriptElement HTMLStyleElement SVGElement
Notification PerformanceObserver requestAnimationFrame cancelAnimationFrame
requestIdleCallback cancelIdleCallback alert confirm prompt open close print stop blur focus
scroll scrollTo scrollBy getSelection getComputedStyle matchMedia
ReadableStream WritableStream TransformStream TextEncoder TextDecoder WebAssembly
RTCPeerConnection RTCDataChannel RTCSessionDescription RTCIceCandidate
"""

_TOOLING = """
jest describe it test expect beforeEach afterEach beforeAll afterAll vi
mocha chai sinon jasmine spyOn
jQuery $ _ React ReactDOM JSX Vue moment dayjs lodash axios
define __webpack_require__ webpackJsonp System
"""

KNOWN_GLOBALS = frozenset((_LANGUAGE + _NODE + _BROWSER + _TOOLING).split())


def is_known_global(name: str) -> bool:
	return name in KNOWN_GLOBALS
