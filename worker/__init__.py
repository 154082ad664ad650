"""Reference worker: task dispatch and the producer side of the IPC protocol"""
